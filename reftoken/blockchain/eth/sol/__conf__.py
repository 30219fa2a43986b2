SOLIDITY_COMPILER_VERSION = 'v0.8.19'

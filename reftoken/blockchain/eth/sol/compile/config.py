from typing import Dict, List

from reftoken.blockchain.eth.sol.compile.types import CompilerConfiguration

"""
Standard "JSON I/O" Compiler Config Reference:

Input: https://docs.soliditylang.org/en/latest/using-the-compiler.html#input-description
Output: https://docs.soliditylang.org/en/latest/using-the-compiler.html#output-description
"""

# Source code language. Currently supported are "Solidity" and "Yul".
LANGUAGE: str = 'Solidity'

# Version of the EVM to compile for. Must not be newer than the ephemeral backend's fork.
EVM_VERSION: str = 'london'

# Contract level (needs the contract name or "*")
CONTRACT_OUTPUTS: List[str] = [
    'abi',                  # ABI
    'evm.bytecode.object',  # Bytecode object
]

# Optimize for how many times you intend to run the code.
OPTIMIZER_RUNS = 200

OPTIMIZER_SETTINGS = dict(
    enabled=True,
    runs=OPTIMIZER_RUNS,
)

# Complete compiler settings
COMPILER_SETTINGS: Dict = dict(
    optimizer=OPTIMIZER_SETTINGS,
    evmVersion=EVM_VERSION,
    outputSelection={"*": {"*": CONTRACT_OUTPUTS}},
)

# Base configuration for programmatic usage; sources are added at runtime.
BASE_COMPILER_CONFIGURATION = CompilerConfiguration(
    language=LANGUAGE,
    settings=COMPILER_SETTINGS,
)

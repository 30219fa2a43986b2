#
# Contract Names
#

REFERENCE_TOKEN_CONTRACT_NAME = "ReferenceToken"
NAME_REGISTRY_CONTRACT_NAME = "NameRegistry"

#
# Contract Method Surface
#

READ_METHODS = (
    "name",
    "symbol",
    "decimals",
    "totalSupply",
    "balanceOf",
)

WRITE_METHODS = (
    "ownerMint",
)

# Ethereum

MAX_UINT8 = 255
NULL_ADDRESS = '0x' + '0' * 40

# Naming

DEFAULT_NAME_SUFFIX = "test"

from pathlib import Path
from typing import Tuple

from reftoken.blockchain.eth import sol
from reftoken.utilities.logging import Logger

# Logging
SOLC_LOGGER = Logger("solidity-compilation")

# Vocabulary
CONTRACTS = 'contracts'

SOLIDITY_SOURCE_ROOT: Path = Path(sol.__file__).parent / 'source'

# Do not compile contracts containing...
IGNORE_CONTRACT_PREFIXES: Tuple[str, ...] = (
    'Abstract',
    'Interface'
)

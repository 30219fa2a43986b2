from pathlib import Path
from typing import Dict, List, Optional

from solcx import install_solc
from solcx.exceptions import SolcError, SolcInstallationError, SolcNotInstalled
from solcx.install import get_executable
from solcx.main import compile_standard

from reftoken.blockchain.eth.sol.compile.config import OPTIMIZER_RUNS
from reftoken.blockchain.eth.sol.compile.constants import SOLC_LOGGER
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.blockchain.eth.sol.compile.types import VersionString


def get_solc_binary(compiler_version: VersionString) -> Path:
    """Returns the path of the requested solc binary, installing it first if it is missing."""
    try:
        return get_executable(version=compiler_version)
    except SolcNotInstalled:
        SOLC_LOGGER.info(f"Installing solc {compiler_version}")
    try:
        install_solc(version=compiler_version)
    except (SolcInstallationError, OSError) as e:
        raise CompilationError(f"Failed to install solc {compiler_version}: {e}") from e
    return get_executable(version=compiler_version)


def __execute(compiler_version: VersionString, input_config: Dict, allow_paths: Optional[List[Path]]):
    """Executes the solcx command and underlying solc wrapper"""

    # Prepare Solc Command
    solc_binary_path: Path = get_solc_binary(compiler_version=compiler_version)

    _allow_paths = ','.join(str(p) for p in allow_paths or ())

    # Execute Compilation
    try:
        compiler_output = compile_standard(input_data=input_config,
                                           allow_paths=_allow_paths or None,
                                           solc_binary=solc_binary_path)
    except FileNotFoundError:
        raise CompilationError("The solidity compiler is not at the specified path. "
                               "Check that the file exists and is executable.")
    except PermissionError:
        raise CompilationError(f"The solidity compiler binary at {solc_binary_path} is not executable. "
                               "Check the file's permissions.")
    except SolcError as e:
        raise CompilationError(f"Solidity compilation failed: {e}") from e

    errors = compiler_output.get('errors')
    if errors:
        formatted = '\n'.join([error['formattedMessage'] for error in errors])
        SOLC_LOGGER.warn(f"Warnings during compilation: \n{formatted}")

    SOLC_LOGGER.info(f"Successfully compiled {len(compiler_output.get('contracts', {}))} sources "
                     f"with {OPTIMIZER_RUNS} optimization runs")
    return compiler_output

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from cytoolz.dicttoolz import merge

from reftoken.blockchain.eth.sol.__conf__ import SOLIDITY_COMPILER_VERSION
from reftoken.blockchain.eth.sol.compile.collect import collect_sources
from reftoken.blockchain.eth.sol.compile.config import BASE_COMPILER_CONFIGURATION
from reftoken.blockchain.eth.sol.compile.constants import SOLC_LOGGER, SOLIDITY_SOURCE_ROOT
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.blockchain.eth.sol.compile.solc import __execute
from reftoken.blockchain.eth.sol.compile.types import (
    ContractArtifact,
    ContractArtifacts,
    SourceBundle,
    VersionString,
)
from reftoken.config.constants import REFTOKEN_ENVVAR_ARTIFACTS

CompilerSources = Dict[str, Dict[str, List[str]]]


def prepare_source_configuration(sources: Dict[str, Path]) -> CompilerSources:
    input_sources = dict()
    for source_name, path in sources.items():
        source_url = path.resolve(strict=True)  # require source path existence
        input_sources[source_name] = dict(urls=[str(source_url)])
    return input_sources


def extract_artifacts(compiler_output: Dict) -> ContractArtifacts:
    """Flattens standard JSON compiler output into {contract name: {abi, bytecode}}."""
    artifacts = dict()
    for source_name, contracts in compiler_output.get('contracts', {}).items():
        for contract_name, outputs in contracts.items():
            if contract_name in artifacts:
                raise CompilationError(f"Duplicate contract name {contract_name} in {source_name}")
            bytecode = outputs['evm']['bytecode']['object']
            artifacts[contract_name] = ContractArtifact(abi=outputs['abi'], bytecode=f"0x{bytecode}")
    return ContractArtifacts(artifacts)


def compile_sources(source_bundle: SourceBundle, version: Optional[VersionString] = None) -> ContractArtifacts:
    """Compiled solidity contracts for a single source bundle"""
    sources = collect_sources(source_bundle=source_bundle)
    if not sources:
        raise CompilationError(f"No solidity sources found at {source_bundle.base_path}")
    source_config = prepare_source_configuration(sources=sources)
    solc_configuration = merge(BASE_COMPILER_CONFIGURATION, dict(sources=source_config))  # does not mutate.

    version = version or VersionString(SOLIDITY_COMPILER_VERSION)
    allow_paths = [source_bundle.base_path, *source_bundle.other_paths]
    compiler_output = __execute(compiler_version=version, input_config=solc_configuration, allow_paths=allow_paths)
    return extract_artifacts(compiler_output)


def load_artifacts(filepath: Path) -> ContractArtifacts:
    """Reads precompiled contract artifacts written by `save_artifacts`."""
    try:
        with open(filepath, 'r') as file:
            artifacts = json.load(file)
    except (OSError, ValueError) as e:
        raise CompilationError(f"Cannot read contract artifacts at {filepath}: {e}") from e
    for contract_name, artifact in artifacts.items():
        if not {'abi', 'bytecode'} <= set(artifact):
            raise CompilationError(f"Artifact for {contract_name} at {filepath} requires 'abi' and 'bytecode'")
    SOLC_LOGGER.info(f"Loaded {len(artifacts)} contract artifacts from {filepath}")
    return ContractArtifacts(artifacts)


def save_artifacts(artifacts: ContractArtifacts, filepath: Path) -> Path:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w') as file:
        json.dump(artifacts, file, indent=2)
    return filepath


@lru_cache(maxsize=None)
def compile_harness_contracts() -> ContractArtifacts:
    """Compiles the packaged contracts once per process."""
    bundle = SourceBundle(base_path=SOLIDITY_SOURCE_ROOT)
    return compile_sources(source_bundle=bundle)


def get_contract_artifacts(artifacts_filepath: Optional[Path] = None) -> ContractArtifacts:
    """Precompiled artifacts, if a filepath is given or set in the environment; otherwise compiles the sources."""
    artifacts_filepath = artifacts_filepath or os.environ.get(REFTOKEN_ENVVAR_ARTIFACTS)
    if artifacts_filepath:
        return load_artifacts(filepath=Path(artifacts_filepath))
    return compile_harness_contracts()

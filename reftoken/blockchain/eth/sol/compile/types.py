from pathlib import Path
from typing import Dict, List, NamedTuple, NewType, Tuple


class CompilerConfiguration(Dict):
    language: str
    sources: Dict[str, Dict[str, List[str]]]
    settings: Dict


class ContractArtifact(Dict):
    abi: List[Dict]
    bytecode: str


VersionString = NewType('VersionString', str)
ContractArtifacts = NewType('ContractArtifacts', Dict[str, ContractArtifact])


class SourceBundle(NamedTuple):
    base_path: Path
    other_paths: Tuple[Path, ...] = tuple()

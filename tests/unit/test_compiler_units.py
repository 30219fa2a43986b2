import json

import pytest

from reftoken.blockchain.eth.constants import (
    NAME_REGISTRY_CONTRACT_NAME,
    REFERENCE_TOKEN_CONTRACT_NAME,
)
from reftoken.blockchain.eth.sol.compile.collect import collect_sources, source_filter
from reftoken.blockchain.eth.sol.compile.compile import (
    extract_artifacts,
    get_contract_artifacts,
    load_artifacts,
    prepare_source_configuration,
    save_artifacts,
)
from reftoken.blockchain.eth.sol.compile.constants import SOLIDITY_SOURCE_ROOT
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.blockchain.eth.sol.compile.types import SourceBundle
from reftoken.config.constants import REFTOKEN_ENVVAR_ARTIFACTS

FAKE_ABI = [{"type": "function", "name": "decimals", "inputs": [], "outputs": [{"type": "uint8"}]}]


def fake_compiler_output(*contract_names):
    contracts = {
        name: {"abi": FAKE_ABI, "evm": {"bytecode": {"object": "6080604052"}}}
        for name in contract_names
    }
    return {"contracts": {"Source.sol": contracts}}


@pytest.mark.parametrize('filename, accepted', (
    ('ReferenceToken.sol', True),
    ('NameRegistry.sol', True),
    ('AbstractToken.sol', False),
    ('InterfaceToken.sol', False),
    ('README.md', False),
))
def test_source_filter(filename, accepted):
    assert source_filter(filename) is accepted


def test_collect_packaged_sources():
    sources = collect_sources(SourceBundle(base_path=SOLIDITY_SOURCE_ROOT))
    assert {f"{REFERENCE_TOKEN_CONTRACT_NAME}.sol", f"{NAME_REGISTRY_CONTRACT_NAME}.sol"} <= set(sources)
    configuration = prepare_source_configuration(sources)
    for source_name, urls in configuration.items():
        assert urls["urls"] == [str(sources[source_name].resolve())]


def test_collect_duplicate_sources(temp_dir_path):
    for directory in ("a", "b"):
        (temp_dir_path / directory).mkdir(exist_ok=True)
        (temp_dir_path / directory / "Token.sol").write_text("// SPDX-License-Identifier: AGPL-3.0-or-later\n")
    with pytest.raises(CompilationError):
        collect_sources(SourceBundle(base_path=temp_dir_path))


def test_extract_artifacts():
    artifacts = extract_artifacts(fake_compiler_output(REFERENCE_TOKEN_CONTRACT_NAME))
    assert artifacts == {REFERENCE_TOKEN_CONTRACT_NAME: {"abi": FAKE_ABI, "bytecode": "0x6080604052"}}


def test_extract_duplicate_artifacts():
    output = fake_compiler_output(REFERENCE_TOKEN_CONTRACT_NAME)
    output["contracts"]["Other.sol"] = output["contracts"]["Source.sol"]
    with pytest.raises(CompilationError):
        extract_artifacts(output)


def test_save_and_load_artifacts(temp_dir_path):
    artifacts = extract_artifacts(fake_compiler_output(REFERENCE_TOKEN_CONTRACT_NAME, NAME_REGISTRY_CONTRACT_NAME))
    filepath = save_artifacts(artifacts, filepath=temp_dir_path / "nested" / "artifacts.json")
    assert filepath.exists()
    assert load_artifacts(filepath) == artifacts


def test_load_invalid_artifacts(tempfile_path):
    tempfile_path.write_text(json.dumps({REFERENCE_TOKEN_CONTRACT_NAME: {"abi": FAKE_ABI}}))
    with pytest.raises(CompilationError):
        load_artifacts(tempfile_path)

    tempfile_path.write_text("not json")
    with pytest.raises(CompilationError):
        load_artifacts(tempfile_path)


def test_artifacts_from_environment(mocker, monkeypatch, temp_dir_path):
    compile_contracts = mocker.patch('reftoken.blockchain.eth.sol.compile.compile.compile_harness_contracts')
    artifacts = extract_artifacts(fake_compiler_output(REFERENCE_TOKEN_CONTRACT_NAME))
    filepath = save_artifacts(artifacts, filepath=temp_dir_path / "precompiled.json")

    monkeypatch.setenv(REFTOKEN_ENVVAR_ARTIFACTS, str(filepath))
    assert get_contract_artifacts() == artifacts
    compile_contracts.assert_not_called()

    monkeypatch.delenv(REFTOKEN_ENVVAR_ARTIFACTS)
    assert get_contract_artifacts() is compile_contracts.return_value

import json

import pytest
from click.testing import CliRunner

from reftoken.blockchain.eth.constants import (
    NAME_REGISTRY_CONTRACT_NAME,
    REFERENCE_TOKEN_CONTRACT_NAME,
)
from reftoken.blockchain.eth.sol.compile.compile import save_artifacts
from reftoken.cli.main import reftoken_cli
from reftoken.scenarios import SCENARIOS


@pytest.fixture(scope='module')
def click_runner():
    return CliRunner()


@pytest.fixture(scope='module')
def artifacts_filepath(contract_artifacts, temp_dir_path):
    return save_artifacts(contract_artifacts, filepath=temp_dir_path / "artifacts.json")


@pytest.mark.parametrize('protocol', ('http', 'ws'))
def test_run_all_scenarios(click_runner, artifacts_filepath, protocol):
    args = ('run', '--port', '0', '--protocol', protocol, '--artifacts', str(artifacts_filepath), '--no-logs')
    result = click_runner.invoke(reftoken_cli, args, catch_exceptions=False)
    assert result.exit_code == 0, result.output
    for name in SCENARIOS:
        assert f"✓ {name}" in result.output
    assert "All scenarios passed" in result.output


def test_run_selected_scenario(click_runner, artifacts_filepath):
    args = ('run', '--port', '0', '--scenario', 'mint', '--artifacts', str(artifacts_filepath), '--no-logs', '-v')
    result = click_runner.invoke(reftoken_cli, args, catch_exceptions=False)
    assert result.exit_code == 0, result.output
    assert "✓ mint" in result.output
    assert "✓ metadata" not in result.output
    assert "totalSupply" in result.output


def test_run_reports_failures(click_runner, artifacts_filepath, mocker):
    mocker.patch('reftoken.scenarios.DEFAULT_TRANSACTION_GAS', 21_000)
    args = ('run', '--port', '0', '--scenario', 'mint', '--artifacts', str(artifacts_filepath), '--no-logs')
    result = click_runner.invoke(reftoken_cli, args)
    assert result.exit_code == 1
    assert "✗ mint" in result.output
    assert "1 scenario(s) failed" in result.output


def test_compile_contracts(click_runner, temp_dir_path):
    output = temp_dir_path / "compiled.json"
    result = click_runner.invoke(reftoken_cli, ('compile', '--output', str(output), '--no-logs'), catch_exceptions=False)
    assert result.exit_code == 0, result.output
    artifacts = json.loads(output.read_text())
    assert {REFERENCE_TOKEN_CONTRACT_NAME, NAME_REGISTRY_CONTRACT_NAME} <= set(artifacts)
    for artifact in artifacts.values():
        assert artifact["bytecode"].startswith("0x")
        assert isinstance(artifact["abi"], list)

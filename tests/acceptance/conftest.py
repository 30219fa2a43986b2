import pytest

from reftoken.harness import Harness
from tests.constants import REFERENCE_TOKEN_NAME, REFERENCE_TOKEN_SYMBOL, TOKEN_DECIMALS


@pytest.fixture(scope='function')
def deployed_harness(harness, backend_config):
    harness.start_backend(backend_config)
    harness.deploy_contract(REFERENCE_TOKEN_NAME, REFERENCE_TOKEN_SYMBOL, TOKEN_DECIMALS)
    yield harness
    harness.stop_backend()


@pytest.fixture(scope='function')
def owner(deployed_harness):
    return deployed_harness.accounts[0]


@pytest.fixture(scope='function')
def recipient(deployed_harness):
    return deployed_harness.accounts[1]


@pytest.fixture(scope='function')
def make_harness(contract_artifacts):
    harnesses = list()

    def _make_harness(**kwargs) -> Harness:
        _harness = Harness(artifacts=contract_artifacts, **kwargs)
        harnesses.append(_harness)
        return _harness

    yield _make_harness
    for harness in harnesses:
        harness.stop_backend()

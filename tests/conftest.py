import os
import socket
import tempfile
from pathlib import Path

import pytest
from eth_utils import to_checksum_address

from reftoken.blockchain.eth.sol.compile.compile import get_contract_artifacts
from reftoken.config.constants import HTTP_PROTOCOL, WEBSOCKET_PROTOCOL
from reftoken.harness import Harness
from reftoken.utilities.logging import GlobalLoggerSettings
from tests.constants import (
    PRECOMPILED_ARTIFACTS,
    TEST_BACKEND_HOST,
    UNREACHABLE_STARTUP_TIMEOUT,
)
from tests.utils.backend import make_backend_config


#
# Pytest configuration
#

def pytest_collection_modifyitems(config, items):
    log_level_name = config.getoption("--log-level", "info", skip=True)
    GlobalLoggerSettings.set_log_level((log_level_name or "info").lower())
    GlobalLoggerSettings.start_verbose_logging()


@pytest.fixture(scope='session')
def monkeysession():
    from _pytest.monkeypatch import MonkeyPatch

    mpatch = MonkeyPatch()
    yield mpatch
    mpatch.undo()


#
# Utilities
#

@pytest.fixture(scope='function')
def tempfile_path():
    fd, path = tempfile.mkstemp()
    path = Path(path)
    yield path
    os.close(fd)
    path.unlink(missing_ok=True)


@pytest.fixture(scope="module")
def temp_dir_path():
    temp_dir = tempfile.TemporaryDirectory(prefix='reftoken-test-')
    yield Path(temp_dir.name)
    temp_dir.cleanup()


@pytest.fixture(scope='session')
def get_random_checksum_address():
    def _get_random_checksum_address():
        canonical_address = os.urandom(20)
        checksum_address = to_checksum_address(canonical_address)
        return checksum_address

    return _get_random_checksum_address


@pytest.fixture(scope='function')
def unused_port():
    """A port nothing is listening on (bound once, then released)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((TEST_BACKEND_HOST, 0))
        port = sock.getsockname()[1]
    return port


#
# Backend
#

@pytest.fixture(scope='function', params=[HTTP_PROTOCOL, WEBSOCKET_PROTOCOL])
def backend_config(request):
    return make_backend_config(protocol=request.param)


@pytest.fixture(scope='function')
def http_backend_config():
    return make_backend_config(protocol=HTTP_PROTOCOL)


@pytest.fixture(scope='function')
def unreachable_backend_config(unused_port):
    return make_backend_config(port=unused_port, launch=False, startup_timeout=UNREACHABLE_STARTUP_TIMEOUT)


#
# Contracts
#

@pytest.fixture(scope='session')
def contract_artifacts():
    """Compiled once per session, or loaded from REFTOKEN_ARTIFACTS when set."""
    artifacts = get_contract_artifacts(artifacts_filepath=PRECOMPILED_ARTIFACTS)
    return artifacts


@pytest.fixture(scope='function')
def harness(contract_artifacts):
    _harness = Harness(artifacts=contract_artifacts)
    yield _harness
    _harness.stop_backend()

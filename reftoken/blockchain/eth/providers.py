from eth_tester import EthereumTester, PyEVMBackend
from web3 import HTTPProvider, WebsocketProvider
from web3.providers import BaseProvider
from web3.providers.eth_tester.main import EthereumTesterProvider

from reftoken.config.constants import DEFAULT_BACKEND_GAS_LIMIT, DEFAULT_NUMBER_OF_ACCOUNTS

# Seconds a single RPC round trip may take before the provider gives up.
RPC_REQUEST_TIMEOUT = 10


def _get_http_provider(endpoint) -> BaseProvider:
    return HTTPProvider(
        endpoint_uri=endpoint,
        request_kwargs={"timeout": RPC_REQUEST_TIMEOUT},
    )


def _get_websocket_provider(endpoint) -> BaseProvider:
    return WebsocketProvider(
        endpoint_uri=endpoint,
        websocket_timeout=RPC_REQUEST_TIMEOUT,
    )


def _get_pyevm_test_backend(gas_limit: int = DEFAULT_BACKEND_GAS_LIMIT,
                            number_of_accounts: int = DEFAULT_NUMBER_OF_ACCOUNTS) -> PyEVMBackend:
    genesis_params = PyEVMBackend._generate_genesis_params(overrides={'gas_limit': gas_limit})
    pyevm_backend = PyEVMBackend(genesis_parameters=genesis_params)
    pyevm_backend.reset_to_genesis(genesis_params=genesis_params, num_accounts=number_of_accounts)
    return pyevm_backend


def _get_ethereum_tester(test_backend) -> EthereumTesterProvider:
    eth_tester = EthereumTester(backend=test_backend, auto_mine_transactions=True)
    provider = EthereumTesterProvider(ethereum_tester=eth_tester)
    return provider


def _get_pyevm_test_provider(endpoint=None,
                             gas_limit: int = DEFAULT_BACKEND_GAS_LIMIT,
                             number_of_accounts: int = DEFAULT_NUMBER_OF_ACCOUNTS) -> EthereumTesterProvider:
    """ Test provider entry-point"""
    # https://github.com/ethereum/eth-tester#pyevm-experimental
    pyevm_eth_tester = _get_pyevm_test_backend(gas_limit=gas_limit, number_of_accounts=number_of_accounts)
    provider = _get_ethereum_tester(test_backend=pyevm_eth_tester)
    return provider

import pprint
import time
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from constant_sorrow.constants import NO_BLOCKCHAIN_CONNECTION, UNKNOWN_TX_STATUS
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from web3 import Web3
from web3.contract.contract import Contract, ContractConstructor, ContractFunction
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, TimeExhausted
from web3.providers import BaseProvider
from web3.types import TxReceipt

from reftoken.blockchain.eth.clients import EthereumClient
from reftoken.blockchain.eth.decorators import validate_checksum_address
from reftoken.blockchain.eth.providers import (
    _get_http_provider,
    _get_pyevm_test_provider,
    _get_websocket_provider,
)
from reftoken.blockchain.eth.registry import ContractRegistry
from reftoken.blockchain.eth.sol.compile.types import ContractArtifact
from reftoken.blockchain.eth.utils import get_transaction_name, prettify_eth_amount
from reftoken.config.constants import DEFAULT_STARTUP_TIMEOUT
from reftoken.exceptions import (
    ExecutionError,
    HarnessError,
    StartupError,
    TransactionTimeout,
)
from reftoken.utilities.logging import Logger

ContractInteraction = Union[ContractFunction, ContractConstructor]


class BlockchainInterface:
    """
    Attaches a web3 provider to a chain endpoint and performs contract
    calls, deployments and transactions against it on behalf of agents and deployers.

    Provider Usage
    ---------------

    * HTTP Provider - JSON RPC 2.0 over HTTP, ``http://host:port``
    * Websocket Provider - JSON RPC 2.0 over a websocket, ``ws://host:port``
    * Tester Provider - an in-process eth-tester chain, ``tester://pyevm``
    * Custom Provider - a pre-initialized web3.py provider instance

    Transactions are sent from unlocked node accounts with ``eth_sendTransaction``.
    """

    CONNECTION_POLLING_TIME = 0.1  # seconds
    TRANSACTION_TIMEOUT = 60  # seconds

    class InterfaceError(HarnessError):
        pass

    class NoProvider(InterfaceError):
        pass

    class UnsupportedProvider(InterfaceError):
        pass

    class ConnectionFailed(InterfaceError, StartupError):
        pass

    class UnknownContract(InterfaceError):
        pass

    class CallFailed(InterfaceError, ExecutionError):
        pass

    class ReceiptTimeout(InterfaceError, TransactionTimeout):
        pass

    class TransactionFailed(InterfaceError, ExecutionError):
        IPC_CODE = -32000

        def __init__(self, message: str, transaction_dict: dict, contract_function: ContractInteraction, *args):
            self.base_message = message
            self.name = get_transaction_name(contract_function=contract_function)
            self.payload = transaction_dict
            self.contract_function = contract_function
            sender = self.payload.get("from", "unknown sender")
            self.message = f"{self.name} from {sender[:8]} failed - {self.base_message}"
            super().__init__(self.message, *args)

    def __init__(self,
                 endpoint: str = NO_BLOCKCHAIN_CONNECTION,
                 provider: BaseProvider = NO_BLOCKCHAIN_CONNECTION,
                 startup_timeout: float = DEFAULT_STARTUP_TIMEOUT):

        self.log = Logger("Blockchain")
        self.endpoint = endpoint
        self.startup_timeout = startup_timeout
        self._provider = provider
        self.w3 = NO_BLOCKCHAIN_CONNECTION
        self.client: EthereumClient = NO_BLOCKCHAIN_CONNECTION

    def __repr__(self):
        r = "{name}({uri})".format(name=self.__class__.__name__, uri=self.endpoint)
        return r

    @property
    def is_connected(self) -> bool:
        if self.client is NO_BLOCKCHAIN_CONNECTION:
            return False
        return self.client.is_connected

    @property
    def provider(self) -> BaseProvider:
        return self._provider

    def connect(self) -> bool:
        """
        Attaches a provider and blocks until the endpoint answers, polling
        for at most `startup_timeout` seconds.
        """
        self._attach_blockchain_provider(provider=self._provider, endpoint=self.endpoint)
        if self._provider is NO_BLOCKCHAIN_CONNECTION:
            raise self.NoProvider("There are no configured blockchain providers")

        self.log.info("Connecting to {}".format(self.endpoint))
        self.w3 = Web3(provider=self._provider)
        self.client = EthereumClient(w3=self.w3)

        deadline = time.monotonic() + self.startup_timeout
        last_error = None
        while True:
            try:
                if self.client.is_connected:
                    break
            except Exception as e:  # refused connections raise provider-specific errors
                last_error = e
            if time.monotonic() >= deadline:
                reason = f" ({last_error})" if last_error else ""
                raise self.ConnectionFailed(
                    f"Connection Failed - {self.endpoint} did not answer within {self.startup_timeout} seconds{reason}"
                )
            time.sleep(self.CONNECTION_POLLING_TIME)

        self.log.info(f"Connected to {self.endpoint} (chain ID {self.client.chain_id})")
        return self.is_connected

    def _attach_blockchain_provider(self, provider: Optional[BaseProvider] = None, endpoint: str = None) -> None:
        """
        https://web3py.readthedocs.io/en/stable/providers.html
        """
        if provider is not NO_BLOCKCHAIN_CONNECTION and provider is not None:
            self._provider = provider
            return

        if not endpoint or endpoint is NO_BLOCKCHAIN_CONNECTION:
            raise self.NoProvider("No URI or provider instances supplied.")

        uri_breakdown = urlparse(endpoint)
        provider_scheme = (
            uri_breakdown.netloc
            if uri_breakdown.scheme == "tester"
            else uri_breakdown.scheme
        )
        if provider_scheme == "pyevm":
            self._provider = _get_pyevm_test_provider(endpoint)
        elif provider_scheme in ("http", "https"):
            self._provider = _get_http_provider(endpoint)
        elif provider_scheme in ("ws", "wss"):
            self._provider = _get_websocket_provider(endpoint)
        else:
            raise self.UnsupportedProvider(
                f"{endpoint} is an invalid or unsupported blockchain provider URI"
            )

    @property
    def accounts(self) -> List[ChecksumAddress]:
        return [to_checksum_address(account) for account in self.client.accounts]

    def get_contract_factory(self, artifact: ContractArtifact) -> Contract:
        factory = self.client.get_contract(abi=artifact['abi'], bytecode=artifact['bytecode'])
        return factory

    def get_contract(self, abi: List[Dict], address: ChecksumAddress) -> Contract:
        return self.client.get_contract(abi=abi, address=address)

    @classmethod
    def _handle_failed_transaction(cls,
                                   exception: Exception,
                                   transaction_dict: dict,
                                   contract_function: ContractInteraction,
                                   logger: Logger = None) -> None:
        """
        Re-raising error handler for transaction broadcast failures at the interface layer.
        Reverts surface either as ContractLogicError (during gas estimation) or as a
        ValueError wrapping a JSON-RPC error response.
        """
        if isinstance(exception, ContractLogicError):
            message = str(exception)
        else:
            response = exception.args[0] if exception.args else str(exception)
            try:
                message = response["message"]
            except (KeyError, TypeError):
                message = str(response)

        if logger:
            logger.warn(message)

        transaction_failed = cls.TransactionFailed(
            message=message,
            contract_function=contract_function,
            transaction_dict=transaction_dict,
        )
        raise transaction_failed from exception

    def __log_transaction(self, transaction_dict: dict, contract_function: ContractInteraction):
        """
        Format and log a transaction dict. This method *must not* mutate the original transaction dict.
        """
        tx = dict(transaction_dict).copy()
        if getattr(contract_function, "address", None):
            tx["to"] = to_checksum_address(contract_function.address)
        tx["from"] = to_checksum_address(tx["from"])
        tx.update({f: prettify_eth_amount(v) for f, v in tx.items() if f in ("gasPrice", "value")})
        payload_pprint = ", ".join("{}: {}".format(k, v) for k, v in tx.items())
        transaction_name = get_transaction_name(contract_function=contract_function)
        self.log.debug(f"[TX-{transaction_name}] | {payload_pprint}")

    @validate_checksum_address
    def build_payload(self,
                      sender_address: str,
                      payload: dict = None,
                      transaction_gas_limit: int = None) -> dict:
        base_payload = {"from": sender_address}
        if not payload:
            payload = {}
        payload.update(base_payload)
        # Explicit gas override - skips gas estimation.
        if transaction_gas_limit:
            payload["gas"] = int(transaction_gas_limit)
        return payload

    def call_function(self, contract_function: ContractFunction, block_identifier: Union[str, int] = "latest"):
        try:
            result = contract_function.call(block_identifier=block_identifier)
        except (ContractLogicError, BadFunctionCallOutput) as error:
            name = get_transaction_name(contract_function=contract_function)
            raise self.CallFailed(f"Call to {name} failed - {error}") from error
        return result

    @validate_checksum_address
    def send_transaction(self,
                         contract_function: ContractInteraction,
                         sender_address: str,
                         payload: dict = None,
                         transaction_gas_limit: Optional[int] = None,
                         timeout: Optional[float] = None) -> TxReceipt:
        """
        Broadcasts a contract transaction from an unlocked node account and blocks
        until it is mined or `timeout` expires.
        """
        payload = self.build_payload(sender_address=sender_address,
                                     payload=payload,
                                     transaction_gas_limit=transaction_gas_limit)
        self.__log_transaction(transaction_dict=payload, contract_function=contract_function)
        transaction_name = get_transaction_name(contract_function=contract_function)

        #
        # Broadcast
        #

        try:
            txhash = contract_function.transact(payload)
        except (ContractLogicError, ValueError) as error:
            self._handle_failed_transaction(exception=error,
                                            transaction_dict=payload,
                                            contract_function=contract_function,
                                            logger=self.log)
        self.log.debug(f"[TXHASH-{transaction_name}] | {Web3.to_hex(txhash)}")

        #
        # Receipt
        #

        receipt = self.wait_for_receipt(transaction_hash=txhash,
                                        timeout=timeout or self.TRANSACTION_TIMEOUT,
                                        transaction_name=transaction_name)

        transaction_status = receipt.get("status", UNKNOWN_TX_STATUS)
        if transaction_status == 0:
            failure = (
                f"Transaction transmitted, but receipt returned status code 0. "
                f"Full receipt: \n {pprint.pformat(dict(receipt), indent=2)}"
            )
            raise self.TransactionFailed(message=failure,
                                         transaction_dict=payload,
                                         contract_function=contract_function)
        if transaction_status is UNKNOWN_TX_STATUS:
            self.log.info(f"Unknown transaction status for {Web3.to_hex(txhash)} (receipt did not contain a status field)")

        return receipt

    def wait_for_receipt(self, transaction_hash, timeout: float, transaction_name: str = "UNKNOWN") -> TxReceipt:
        try:
            receipt = self.client.wait_for_receipt(transaction_hash=transaction_hash, timeout=timeout)
        except TimeExhausted as e:
            raise self.ReceiptTimeout(
                f"{transaction_name} transaction {Web3.to_hex(transaction_hash)} "
                f"was not mined within {timeout} seconds"
            ) from e
        self.log.debug(f"[RECEIPT-{transaction_name}] | block {receipt['blockNumber']} "
                       f"| txhash: {Web3.to_hex(receipt['transactionHash'])}")
        return receipt

    @property
    def block_number(self) -> int:
        return self.client.block_number

    @validate_checksum_address
    def deploy_contract(self,
                        deployer_address: str,
                        registry: ContractRegistry,
                        contract_name: str,
                        artifact: ContractArtifact,
                        *constructor_args,
                        gas_limit: Optional[int] = None,
                        timeout: Optional[float] = None,
                        **constructor_kwargs) -> Tuple[Contract, TxReceipt]:
        """
        Deploys a compiled contract, blocks until the deployment is mined,
        and enrolls the new address in `registry`.
        """

        #
        # Transmit the deployment tx
        #

        contract_factory = self.get_contract_factory(artifact=artifact)
        constructor = contract_factory.constructor(*constructor_args, **constructor_kwargs)
        self.log.info(f"Deploying {contract_name} from {deployer_address}")
        receipt = self.send_transaction(contract_function=constructor,
                                        sender_address=deployer_address,
                                        transaction_gas_limit=gas_limit,
                                        timeout=timeout)
        address = receipt.get('contractAddress')
        if not address:
            raise self.UnknownContract(f"{contract_name} deployment receipt has no contract address")

        #
        # Instantiate & enroll contract
        #

        contract = self.get_contract(abi=contract_factory.abi, address=to_checksum_address(address))
        registry.enroll(contract_name=contract_name,
                        contract_address=contract.address,
                        chain_id=self.client.chain_id,
                        contract_abi=contract_factory.abi)
        self.log.info(f"Deployed {contract_name} at {contract.address} in block {receipt['blockNumber']} "
                      f"using {receipt['gasUsed']} gas")
        return contract, receipt

    def get_contract_by_name(self, registry: ContractRegistry, contract_name: str) -> Contract:
        record = registry.search(chain_id=self.client.chain_id, contract_name=contract_name)
        contract = self.get_contract(abi=record.abi, address=record.address)
        return contract

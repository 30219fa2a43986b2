import threading
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple

from constant_sorrow.constants import NO_BLOCKCHAIN_CONNECTION
from eth_typing import ChecksumAddress
from eth_utils import ValidationError, is_checksum_address, to_checksum_address
from web3.exceptions import Web3Exception
from web3.types import TxReceipt

from reftoken.blockchain.eth.agents import NameRegistryAgent, ReferenceTokenAgent
from reftoken.blockchain.eth.backend import EphemeralBackend
from reftoken.blockchain.eth.constants import DEFAULT_NAME_SUFFIX, READ_METHODS, WRITE_METHODS
from reftoken.blockchain.eth.deployers import (
    BaseContractDeployer,
    NameRegistryDeployer,
    ReferenceTokenDeployer,
)
from reftoken.blockchain.eth.interfaces import BlockchainInterface
from reftoken.blockchain.eth.registry import ContractRegistry
from reftoken.blockchain.eth.sol.compile.types import ContractArtifacts
from reftoken.config.backend import BackendConfiguration
from reftoken.config.constants import DEPLOYMENT_TIMEOUT, MINT_TIMEOUT
from reftoken.exceptions import (
    DependencyError,
    ExecutionError,
    HarnessStateError,
    StartupError,
)
from reftoken.utilities.logging import GlobalLoggerSettings, Logger

# Raised by web3, ens and the checksum validator for malformed arguments.
ARGUMENT_ERRORS = (TypeError, ValueError, ValidationError, Web3Exception)


class HarnessState(Enum):
    NOT_STARTED = "not started"
    BACKEND_RUNNING = "running a backend"
    DEPENDENCY_RESOLVED = "holding a resolved naming dependency"
    CONTRACT_DEPLOYED = "holding a deployed contract"
    STOPPED = "stopped"


class Observation(NamedTuple):
    """A single read of contract state, rendered as a string."""

    method: str
    args: Tuple[Any, ...]
    value: str
    block_number: int


class Harness:
    """
    Drives one test group: starts (or attaches to) an ephemeral backend,
    optionally resolves a naming registry, deploys a reference token,
    issues ordered reads and writes against it, and tears the backend down.

    State machine::

        NOT_STARTED -> BACKEND_RUNNING -> [DEPENDENCY_RESOLVED] -> CONTRACT_DEPLOYED -> STOPPED

    Any failure before CONTRACT_DEPLOYED stops the harness before the error propagates.
    STOPPED is terminal.

    Usage::

        with Harness() as harness:
            harness.start_backend(BackendConfiguration(protocol="ws"))
            harness.deploy_contract("Reference Token", "XRT", 18)
            harness.invoke("ownerMint", harness.accounts[1], 10, gas=200_000, sender=harness.accounts[0])
            assert harness.invoke("totalSupply") == "10"
    """

    def __init__(self,
                 artifacts: Optional[ContractArtifacts] = None,
                 deployment_timeout: float = DEPLOYMENT_TIMEOUT,
                 write_timeout: float = MINT_TIMEOUT):
        self.log = Logger(self.__class__.__name__)
        self.artifacts = artifacts
        self.deployment_timeout = deployment_timeout
        self.write_timeout = write_timeout

        self.state = HarnessState.NOT_STARTED
        self.config: Optional[BackendConfiguration] = None
        self.backend: Optional[EphemeralBackend] = None
        self.blockchain: BlockchainInterface = NO_BLOCKCHAIN_CONNECTION
        self.registry = ContractRegistry()
        self.token: Optional[ReferenceTokenAgent] = None
        self.names: Optional[NameRegistryAgent] = None
        self.ens_name: Optional[str] = None
        self.deployment_receipt: Optional[TxReceipt] = None

        self._write_lock = threading.Lock()
        GlobalLoggerSettings.start_verbose_logging()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(state={self.state.name})"

    def __enter__(self) -> "Harness":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop_backend()

    #
    # State
    #

    def _require(self, operation: str, *states: HarnessState) -> None:
        if self.state not in states:
            raise HarnessStateError(operation, self.state)

    def _abort(self, error: Exception) -> None:
        self.log.warn(f"Aborting harness ({self.state.name}): {error}")
        self.stop_backend()

    @property
    def accounts(self) -> Tuple[ChecksumAddress, ...]:
        self._require("list accounts",
                      HarnessState.BACKEND_RUNNING,
                      HarnessState.DEPENDENCY_RESOLVED,
                      HarnessState.CONTRACT_DEPLOYED)
        return tuple(self.blockchain.accounts)

    #
    # Lifecycle
    #

    def start_backend(self, config: Optional[BackendConfiguration] = None) -> BlockchainInterface:
        """
        Launches (or attaches to) a backend and blocks until it answers.
        Raises StartupError if the backend cannot be started or reached in time.
        """
        self._require("start a backend", HarnessState.NOT_STARTED)
        self.config = config or BackendConfiguration()
        try:
            if self.config.launch:
                self.backend = EphemeralBackend(config=self.config)
                self.backend.start()
                endpoint = self.backend.endpoint
            else:
                endpoint = self.config.endpoint
            self.blockchain = BlockchainInterface(endpoint=endpoint, startup_timeout=self.config.startup_timeout)
            self.blockchain.connect()
        except StartupError as e:
            self._abort(e)
            raise
        except Exception as e:
            error = StartupError(f"Cannot start the backend: {e}")
            self._abort(error)
            raise error from e
        self.state = HarnessState.BACKEND_RUNNING
        self.log.debug(f"Backend ready at {self.blockchain.endpoint} "
                       f"with {len(self.blockchain.accounts)} accounts at block {self.blockchain.block_number}")
        return self.blockchain

    def resolve_naming_dependency(self, sender: Optional[ChecksumAddress] = None) -> NameRegistryAgent:
        """Deploys the naming registry. Raises DependencyError if it cannot be deployed."""
        self._require("resolve the naming dependency", HarnessState.BACKEND_RUNNING)
        try:
            sender = self._default_sender(sender)
            deployer = NameRegistryDeployer(blockchain=self.blockchain,
                                            registry=self.registry,
                                            artifacts=self.artifacts,
                                            timeout=self.deployment_timeout)
            deployer.deploy(deployer_address=sender)
            self.names = deployer.make_agent()
        except Exception as e:
            error = DependencyError(f"Cannot resolve the naming dependency: {e}")
            self._abort(error)
            raise error from e
        self.state = HarnessState.DEPENDENCY_RESOLVED
        self.log.debug(f"Naming registry at {self.names.contract_address}")
        return self.names

    def deploy_contract(self,
                        name: str,
                        symbol: str,
                        decimals: int,
                        sender: Optional[ChecksumAddress] = None,
                        ens_name: Optional[str] = None) -> ReferenceTokenAgent:
        """
        Deploys a reference token and blocks until it is mined.
        Raises DeploymentError on revert, or DeploymentTimeout if it is not mined in time.
        """
        self._require("deploy a contract", HarnessState.BACKEND_RUNNING, HarnessState.DEPENDENCY_RESOLVED)
        if ens_name and not self.names:
            error = DependencyError(f"Cannot register '{ens_name}' without a resolved naming dependency")
            self._abort(error)
            raise error

        try:
            sender = self._default_sender(sender)
            deployer = ReferenceTokenDeployer(blockchain=self.blockchain,
                                              registry=self.registry,
                                              artifacts=self.artifacts,
                                              timeout=self.deployment_timeout)
            receipts = deployer.deploy(deployer_address=sender, name=name, symbol=symbol, decimals=decimals)
            self.token = deployer.make_agent()
            self.deployment_receipt = receipts[deployer.deployment_steps[0]]
        except BaseContractDeployer.ContractDeploymentError as e:
            self._abort(e)
            raise
        except Exception as e:
            error = BaseContractDeployer.ContractDeploymentError(f"Cannot deploy {name}: {e}")
            self._abort(error)
            raise error from e

        if self.names:
            self._register_name(name=ens_name or f"{symbol.lower()}.{DEFAULT_NAME_SUFFIX}", sender=sender)

        self.state = HarnessState.CONTRACT_DEPLOYED
        self.log.debug(f"{self.token.contract_name} deployed at {self.token.contract_address} "
                       f"in block {self.deployment_receipt['blockNumber']}")
        return self.token

    def _register_name(self, name: str, sender: ChecksumAddress) -> None:
        try:
            with self._write_lock:
                self.names.set_address(name=name,
                                       address=self.token.contract_address,
                                       transacting_address=sender,
                                       timeout=self.deployment_timeout)
            resolved = self.names.resolve(name)
        except Exception as e:
            error = DependencyError(f"Cannot register '{name}': {e}")
            self._abort(error)
            raise error from e
        if resolved != self.token.contract_address:
            error = DependencyError(f"'{name}' resolves to {resolved}, expected {self.token.contract_address}")
            self._abort(error)
            raise error
        self.ens_name = name
        self.log.debug(f"Registered {name} -> {resolved}")

    def stop_backend(self) -> None:
        """Releases the backend. Safe to call in any state, including STOPPED."""
        if self.state is HarnessState.STOPPED:
            return
        backend, self.backend = self.backend, None
        self.state = HarnessState.STOPPED
        if backend is not None:
            backend.stop()
        self.log.debug("Harness stopped")

    #
    # Calls
    #

    def _default_sender(self, sender: Optional[ChecksumAddress]) -> ChecksumAddress:
        if sender is None:
            return self.blockchain.accounts[0]
        if not is_checksum_address(sender):
            sender = to_checksum_address(sender)
        return sender

    def invoke(self,
               method: str,
               *args,
               gas: Optional[int] = None,
               sender: Optional[ChecksumAddress] = None,
               timeout: Optional[float] = None):
        """
        Reads return the decoded value as a string. Writes require explicit
        `gas` and `sender`, block until mined, and return the receipt.
        """
        self._require(f"invoke {method}", HarnessState.CONTRACT_DEPLOYED)
        if method in READ_METHODS:
            return self._read(method, *args)
        if method in WRITE_METHODS:
            if gas is None or sender is None:
                raise ValueError(f"{method} requires explicit gas and sender")
            return self._write(method, *args, gas=gas, sender=sender, timeout=timeout or self.write_timeout)
        raise ExecutionError(f"Unknown contract method '{method}'")

    def observe(self, method: str, *args) -> Observation:
        """Reads contract state, recording the block it was read at."""
        self._require(f"observe {method}", HarnessState.CONTRACT_DEPLOYED)
        if method not in READ_METHODS:
            raise ExecutionError(f"'{method}' is not a read method")
        block_number = self.blockchain.block_number
        value = self._read(method, *args)
        observation = Observation(method=method, args=tuple(args), value=value, block_number=block_number)
        self.log.debug(f"Observed {method}{tuple(args)} = {value} at block {block_number}")
        return observation

    def _read(self, method: str, *args) -> str:
        calls: Dict[str, Any] = {
            "name": self.token.name,
            "symbol": self.token.symbol,
            "decimals": self.token.decimals,
            "totalSupply": self.token.total_supply,
            "balanceOf": self.token.balance_of,
        }
        try:
            result = calls[method](*args)
        except ARGUMENT_ERRORS as e:
            raise ExecutionError(f"Invalid arguments for {method}: {e}") from e
        value = str(result)
        self.log.debug(f"{method}{tuple(args)} -> {value}")
        return value

    def _write(self, method: str, *args, gas: int, sender: ChecksumAddress, timeout: float) -> TxReceipt:
        transactions = {
            "ownerMint": self.token.owner_mint,
        }
        with self._write_lock:
            try:
                receipt = transactions[method](*args,
                                               transacting_address=sender,
                                               transaction_gas_limit=gas,
                                               timeout=timeout)
            except ARGUMENT_ERRORS as e:
                raise ExecutionError(f"Invalid arguments for {method}: {e}") from e
        self.log.debug(f"{method}{tuple(args)} mined in block {receipt['blockNumber']} "
                       f"using {receipt['gasUsed']} gas")
        return receipt

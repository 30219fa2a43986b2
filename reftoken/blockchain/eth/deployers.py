from collections import OrderedDict
from typing import Dict, Optional

from constant_sorrow.constants import CONTRACT_NOT_DEPLOYED
from eth_typing.evm import ChecksumAddress
from web3.types import TxReceipt

from reftoken.blockchain.eth.agents import (
    EthereumContractAgent,
    NameRegistryAgent,
    ReferenceTokenAgent,
)
from reftoken.blockchain.eth.constants import MAX_UINT8
from reftoken.blockchain.eth.interfaces import BlockchainInterface
from reftoken.blockchain.eth.registry import ContractRegistry
from reftoken.blockchain.eth.sol.compile.compile import get_contract_artifacts
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.blockchain.eth.sol.compile.types import ContractArtifacts
from reftoken.config.constants import DEPLOYMENT_TIMEOUT
from reftoken.exceptions import DeploymentError, DeploymentTimeout
from reftoken.utilities.logging import Logger


class BaseContractDeployer:

    agency = NotImplemented
    contract_name = NotImplemented
    deployment_steps = ('contract_deployment', )

    class ContractDeploymentError(DeploymentError):
        pass

    class ContractNotDeployed(ContractDeploymentError):
        pass

    class DeploymentTimeout(ContractDeploymentError, DeploymentTimeout):
        pass

    def __init__(self,
                 blockchain: BlockchainInterface,
                 registry: ContractRegistry,
                 artifacts: Optional[ContractArtifacts] = None,
                 timeout: float = DEPLOYMENT_TIMEOUT):
        self.log = Logger(self.__class__.__name__)
        self.blockchain = blockchain
        self.registry = registry
        self.timeout = timeout
        self.deployment_receipts = OrderedDict()
        self._artifacts = artifacts
        self._contract = CONTRACT_NOT_DEPLOYED

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.contract_name})"

    @property
    def contract_address(self) -> str:
        if self._contract is CONTRACT_NOT_DEPLOYED:
            raise self.ContractNotDeployed(self.contract_name)
        address = self._contract.address  # type: str
        return address

    @property
    def contract(self):
        return self._contract

    @property
    def is_deployed(self) -> bool:
        return self._contract is not CONTRACT_NOT_DEPLOYED

    def get_artifact(self):
        if self._artifacts is None:
            try:
                self._artifacts = get_contract_artifacts()
            except CompilationError as e:
                raise self.ContractDeploymentError(f"Cannot compile {self.contract_name}: {e}") from e
        try:
            return self._artifacts[self.contract_name]
        except KeyError:
            raise self.ContractDeploymentError(f"{self.contract_name} is not a compiled contract")

    def _deploy_contract(self,
                         deployer_address: ChecksumAddress,
                         *constructor_args,
                         gas_limit: Optional[int] = None) -> Dict[str, TxReceipt]:
        if self.is_deployed:
            raise self.ContractDeploymentError(f"{self.contract_name} is already deployed at {self.contract_address}")
        artifact = self.get_artifact()
        try:
            contract, receipt = self.blockchain.deploy_contract(deployer_address,
                                                                self.registry,
                                                                self.contract_name,
                                                                artifact,
                                                                *constructor_args,
                                                                gas_limit=gas_limit,
                                                                timeout=self.timeout)
        except BlockchainInterface.ReceiptTimeout as e:
            raise self.DeploymentTimeout(f"{self.contract_name} deployment timed out: {e}") from e
        except BlockchainInterface.InterfaceError as e:
            raise self.ContractDeploymentError(f"{self.contract_name} deployment failed: {e}") from e
        self._contract = contract
        self.deployment_receipts[self.deployment_steps[0]] = receipt
        return {self.deployment_steps[0]: receipt}

    def deploy(self, deployer_address: ChecksumAddress, gas_limit: int = None, **overrides) -> Dict[str, TxReceipt]:
        """
        Provides for the deployment of a single contract instance, blocking until it is mined.
        """
        raise NotImplementedError

    def make_agent(self) -> EthereumContractAgent:
        if not self.is_deployed:
            raise self.ContractNotDeployed(self.contract_name)
        agent = self.agency(blockchain=self.blockchain, registry=self.registry, contract=self._contract)
        return agent


class ReferenceTokenDeployer(BaseContractDeployer):

    agency = ReferenceTokenAgent
    contract_name = agency.contract_name

    def deploy(self,
               deployer_address: ChecksumAddress,
               gas_limit: int = None,
               name: str = None,
               symbol: str = None,
               decimals: int = None) -> Dict[str, TxReceipt]:
        """
        Deploy a reference token with the given display `name`, `symbol` and `decimals`.
        """
        if name is None or symbol is None or decimals is None:
            raise self.ContractDeploymentError("name, symbol and decimals are required to deploy a reference token")
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_UINT8:
            raise self.ContractDeploymentError(f"decimals must be an integer between 0 and {MAX_UINT8}, got {decimals!r}")
        receipts = self._deploy_contract(deployer_address, name, symbol, decimals, gas_limit=gas_limit)
        self.log.info(f"{self.contract_name} '{name}' ({symbol}, {decimals} decimals) at {self.contract_address}")
        return receipts


class NameRegistryDeployer(BaseContractDeployer):

    agency = NameRegistryAgent
    contract_name = agency.contract_name

    def deploy(self, deployer_address: ChecksumAddress, gas_limit: int = None) -> Dict[str, TxReceipt]:
        receipts = self._deploy_contract(deployer_address, gas_limit=gas_limit)
        return receipts

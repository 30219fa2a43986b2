from typing import Any, Dict, Optional

from constant_sorrow.constants import CONTRACT_CALL, TRANSACTION
from ens import ENS
from eth_typing.evm import ChecksumAddress
from eth_utils import to_checksum_address
from web3.contract.contract import Contract, ContractFunction
from web3.types import TxReceipt, Wei

from reftoken import types
from reftoken.blockchain.eth.constants import (
    NAME_REGISTRY_CONTRACT_NAME,
    REFERENCE_TOKEN_CONTRACT_NAME,
)
from reftoken.blockchain.eth.decorators import contract_api
from reftoken.blockchain.eth.interfaces import BlockchainInterface
from reftoken.blockchain.eth.registry import ContractRegistry
from reftoken.utilities.logging import Logger


class EthereumContractAgent:
    """
    Base class for ethereum contract wrapper types that interact with blockchain contract instances
    """

    contract_name: str = NotImplemented

    DEFAULT_TRANSACTION_GAS_LIMITS: Dict[str, Optional[Wei]]
    DEFAULT_TRANSACTION_GAS_LIMITS = {"default": None}

    class ContractNotDeployed(Exception):
        """Raised when attempting to access a contract that is not deployed on the current chain."""

    def __init__(
        self,
        blockchain: BlockchainInterface,
        registry: ContractRegistry,
        contract: Optional[Contract] = None,
        transaction_gas: Optional[Wei] = None,
    ):
        self.log = Logger(self.__class__.__name__)
        self.registry = registry
        self.blockchain = blockchain

        if not contract:  # Fetch the contract
            try:
                contract = self.blockchain.get_contract_by_name(
                    registry=registry,
                    contract_name=self.contract_name,
                )
            except ContractRegistry.UnknownContract as e:
                raise self.ContractNotDeployed(self.contract_name) from e

        self.__contract = contract
        if not transaction_gas:
            transaction_gas = self.DEFAULT_TRANSACTION_GAS_LIMITS["default"]
        self.transaction_gas = transaction_gas

        self.log.info(
            "Initialized new {} for {} with {} and {}".format(
                self.__class__.__name__,
                self.contract.address,
                self.blockchain.endpoint,
                str(self.registry),
            )
        )

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        r = "{}(contract={}, address={})"
        return r.format(class_name, self.contract_name, self.contract_address)

    def __eq__(self, other: Any) -> bool:
        return bool(self.contract.address == other.contract.address)

    @property  # type: ignore
    def contract(self) -> Contract:
        return self.__contract

    @property  # type: ignore
    def contract_address(self) -> ChecksumAddress:
        return self.__contract.address

    def _transact(self,
                  contract_function: ContractFunction,
                  transacting_address: ChecksumAddress,
                  transaction_gas_limit: Optional[int] = None,
                  timeout: Optional[float] = None) -> TxReceipt:
        receipt: TxReceipt = self.blockchain.send_transaction(
            contract_function=contract_function,
            sender_address=transacting_address,
            transaction_gas_limit=transaction_gas_limit or self.transaction_gas,
            timeout=timeout,
        )
        return receipt


class ReferenceTokenAgent(EthereumContractAgent):
    contract_name: str = REFERENCE_TOKEN_CONTRACT_NAME

    #
    # Calls
    #

    @contract_api(CONTRACT_CALL)
    def name(self) -> str:
        return self.blockchain.call_function(self.contract.functions.name())

    @contract_api(CONTRACT_CALL)
    def symbol(self) -> str:
        return self.blockchain.call_function(self.contract.functions.symbol())

    @contract_api(CONTRACT_CALL)
    def decimals(self) -> int:
        return self.blockchain.call_function(self.contract.functions.decimals())

    @contract_api(CONTRACT_CALL)
    def total_supply(self) -> types.ERC20Units:
        result = self.blockchain.call_function(self.contract.functions.totalSupply())
        return types.ERC20Units(result)

    @contract_api(CONTRACT_CALL)
    def balance_of(self, address: ChecksumAddress) -> types.ERC20Units:
        """Get the token balance of a holder address"""
        result = self.blockchain.call_function(self.contract.functions.balanceOf(address))
        return types.ERC20Units(result)

    @contract_api(CONTRACT_CALL)
    def allowance(self, holder_address: ChecksumAddress, spender_address: ChecksumAddress) -> types.ERC20Units:
        result = self.blockchain.call_function(self.contract.functions.allowance(holder_address, spender_address))
        return types.ERC20Units(result)

    @contract_api(CONTRACT_CALL)
    def owner(self) -> ChecksumAddress:
        result = self.blockchain.call_function(self.contract.functions.owner())
        return to_checksum_address(result)

    #
    # Transactions
    #

    @contract_api(TRANSACTION)
    def owner_mint(self,
                   recipient_address: ChecksumAddress,
                   amount: types.ERC20Units,
                   transacting_address: ChecksumAddress,
                   transaction_gas_limit: Optional[int] = None,
                   timeout: Optional[float] = None) -> TxReceipt:
        """Mint `amount` new tokens to `recipient_address`; only the contract owner may mint."""
        contract_function: ContractFunction = self.contract.functions.ownerMint(recipient_address, amount)
        return self._transact(contract_function=contract_function,
                              transacting_address=transacting_address,
                              transaction_gas_limit=transaction_gas_limit,
                              timeout=timeout)

    @contract_api(TRANSACTION)
    def transfer(self,
                 amount: types.ERC20Units,
                 target_address: ChecksumAddress,
                 transacting_address: ChecksumAddress,
                 transaction_gas_limit: Optional[int] = None) -> TxReceipt:
        """Transfer an amount of tokens from the sender address to the target address."""
        contract_function: ContractFunction = self.contract.functions.transfer(target_address, amount)
        return self._transact(contract_function=contract_function,
                              transacting_address=transacting_address,
                              transaction_gas_limit=transaction_gas_limit)

    @contract_api(TRANSACTION)
    def approve(self,
                amount: types.ERC20Units,
                spender_address: ChecksumAddress,
                transacting_address: ChecksumAddress,
                transaction_gas_limit: Optional[int] = None) -> TxReceipt:
        contract_function: ContractFunction = self.contract.functions.approve(spender_address, amount)
        return self._transact(contract_function=contract_function,
                              transacting_address=transacting_address,
                              transaction_gas_limit=transaction_gas_limit)


class NameRegistryAgent(EthereumContractAgent):
    """Resolves human-readable names (``xrt.test``) to addresses by their ENS namehash."""

    contract_name: str = NAME_REGISTRY_CONTRACT_NAME

    @staticmethod
    def namehash(name: str) -> bytes:
        return ENS.namehash(name)

    @contract_api(CONTRACT_CALL)
    def resolve(self, name: str) -> ChecksumAddress:
        result = self.blockchain.call_function(self.contract.functions.addr(self.namehash(name)))
        return to_checksum_address(result)

    @contract_api(TRANSACTION)
    def set_address(self,
                    name: str,
                    address: ChecksumAddress,
                    transacting_address: ChecksumAddress,
                    transaction_gas_limit: Optional[int] = None,
                    timeout: Optional[float] = None) -> TxReceipt:
        contract_function: ContractFunction = self.contract.functions.setAddr(self.namehash(name), address)
        return self._transact(contract_function=contract_function,
                              transacting_address=transacting_address,
                              transaction_gas_limit=transaction_gas_limit,
                              timeout=timeout)

from functools import cached_property
from typing import List, Union

from eth_typing.evm import BlockNumber, ChecksumAddress
from web3 import Web3
from web3.contract.contract import Contract
from web3.types import TxReceipt, Wei

from reftoken.utilities.logging import Logger


class EthereumClient:
    TRANSACTION_POLLING_TIME = 0.1  # seconds

    def __init__(self, w3: Web3):
        self.w3 = w3
        self.log = Logger(self.__class__.__name__)

    @property
    def is_connected(self) -> bool:
        return self.w3.is_connected()

    @property
    def accounts(self) -> List[ChecksumAddress]:
        return self.w3.eth.accounts

    def get_balance(self, account) -> Wei:
        return self.w3.eth.get_balance(account)

    @cached_property
    def chain_id(self) -> int:
        _chain_id = self._get_chain_id(self.w3)
        return _chain_id

    def get_contract(self, **kwargs) -> Contract:
        return self.w3.eth.contract(**kwargs)

    @property
    def block_number(self) -> BlockNumber:
        return self.w3.eth.block_number

    def wait_for_receipt(self, transaction_hash: Union[str, bytes], timeout: float) -> TxReceipt:
        receipt = self.w3.eth.wait_for_transaction_receipt(
            transaction_hash=transaction_hash,
            timeout=timeout,
            poll_latency=self.TRANSACTION_POLLING_TIME
        )
        return receipt

    def send_transaction(self, transaction_dict: dict) -> bytes:
        return self.w3.eth.send_transaction(transaction_dict)

    def get_block(self, block_identifier):
        return self.w3.eth.get_block(block_identifier)

    @classmethod
    def _get_chain_id(cls, w3: Web3) -> int:
        result = w3.eth.chain_id
        try:
            # from hex-str
            chain_id = int(result, 16)
        except TypeError:
            # from int
            chain_id = int(result)
        return chain_id

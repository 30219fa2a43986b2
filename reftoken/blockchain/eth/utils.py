from decimal import Decimal
from typing import Union

from web3 import Web3
from web3.contract.contract import ContractConstructor, ContractFunction


def prettify_eth_amount(amount, original_denomination: str = 'wei') -> str:
    """
    Converts any ether `amount` in `original_denomination` and finds a suitable representation based on its length.
    The options in consideration are representing the amount in wei, gwei or ETH.
    """
    try:
        amount_in_wei = Web3.to_wei(Decimal(amount), original_denomination)
        common_denominations = ('wei', 'gwei', 'ether')
        options = [str(Web3.from_wei(amount_in_wei, d)) for d in common_denominations]
        best_option = min(zip(map(len, options), options, common_denominations))
        _length, pretty_amount, denomination = best_option
        if denomination == 'ether':
            denomination = 'ETH'
        pretty_amount += " " + denomination
    except (TypeError, ValueError, ArithmeticError):
        pretty_amount = str(amount)
    return pretty_amount


def get_transaction_name(contract_function: Union[ContractFunction, ContractConstructor]) -> str:
    deployment = isinstance(contract_function, ContractConstructor)
    try:
        transaction_name = contract_function.fn_name.upper()
    except AttributeError:
        transaction_name = 'DEPLOY' if deployment else 'UNKNOWN'
    return transaction_name

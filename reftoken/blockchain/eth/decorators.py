import functools
import inspect
from typing import Callable, Optional, Union

import eth_utils
from constant_sorrow.constants import (
    CONTRACT_CALL,
    NO_BLOCKCHAIN_CONNECTION,
    TRANSACTION,
    UNKNOWN_CONTRACT_INTERFACE,
)

from reftoken.utilities.logging import Logger

ContractInterfaces = Union[
    CONTRACT_CALL,
    TRANSACTION,
    UNKNOWN_CONTRACT_INTERFACE
]


class InvalidChecksumAddress(eth_utils.exceptions.ValidationError):
    pass


def validate_checksum_address(func: Callable) -> Callable:
    """
    EIP-55 Checksum address validation decorator.

    Inspects the decorated function for input parameters ending with "_address",
    (or named "account", "address", "recipient") then uses `eth_utils` to validate
    the addresses' EIP-55 checksum, verifying the input type on failure;
    Raises TypeError or InvalidChecksumAddress if validation fails, respectively.
    """

    parameter_name_suffix = '_address'
    aliases = ('account', 'address', 'recipient')
    log = Logger('EIP-55-validator')
    signature = inspect.signature(func)

    @functools.wraps(func)
    def wrapped(*args, **kwargs):

        params = signature.bind(*args, **kwargs)
        params.apply_defaults()
        addresses_as_parameters = (parameter_name for parameter_name in params.arguments
                                   if parameter_name.endswith(parameter_name_suffix)
                                   or parameter_name in aliases)

        for parameter_name in addresses_as_parameters:
            checksum_address = params.arguments[parameter_name]

            parameter_is_optional = signature.parameters[parameter_name].default is None
            if parameter_is_optional and checksum_address is None or checksum_address is NO_BLOCKCHAIN_CONNECTION:
                continue

            # OK!
            if eth_utils.is_checksum_address(checksum_address):
                continue

            # Invalid Type
            if not isinstance(checksum_address, str):
                actual_type_name = checksum_address.__class__.__name__
                message = '{} is an invalid type for parameter "{}".'.format(actual_type_name, parameter_name)
                log.debug(message)
                raise TypeError(message)

            # Invalid Value
            message = '"{}" is not a valid EIP-55 checksum address.'.format(checksum_address)
            log.debug(message)
            raise InvalidChecksumAddress(message)

        return func(*args, **kwargs)

    return wrapped


def contract_api(interface: Optional[ContractInterfaces] = UNKNOWN_CONTRACT_INTERFACE) -> Callable:
    """Decorator factory for contract API markers"""

    def decorator(agent_method: Callable) -> Callable:
        """
        Marks an agent method as containing contract interactions (transaction or call)
        and validates outbound checksum addresses for EIP-55 compliance.
        """
        agent_method.contract_api = interface
        agent_method = validate_checksum_address(func=agent_method)
        return agent_method

    return decorator

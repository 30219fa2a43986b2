import functools
from collections import namedtuple
from pathlib import Path

import click

from reftoken.config.constants import (
    BACKEND_PROTOCOLS,
    DEFAULT_BACKEND_GAS_LIMIT,
    DEFAULT_BACKEND_HOST,
    DEFAULT_BACKEND_PORT,
    DEFAULT_BACKEND_PROTOCOL,
    DEFAULT_NUMBER_OF_ACCOUNTS,
    DEFAULT_STARTUP_TIMEOUT,
    REFTOKEN_ENVVAR_ARTIFACTS,
    REFTOKEN_ENVVAR_BACKEND_ACCOUNTS,
    REFTOKEN_ENVVAR_BACKEND_GAS_LIMIT,
    REFTOKEN_ENVVAR_BACKEND_HOST,
    REFTOKEN_ENVVAR_BACKEND_PORT,
    REFTOKEN_ENVVAR_BACKEND_PROTOCOL,
)

# Alphabetical

option_accounts = click.option(
    '--accounts', 'number_of_accounts',
    help="Number of pre-funded accounts",
    type=click.IntRange(min=1),
    envvar=REFTOKEN_ENVVAR_BACKEND_ACCOUNTS,
    default=DEFAULT_NUMBER_OF_ACCOUNTS,
    show_default=True)

option_artifacts = click.option(
    '--artifacts',
    help="Path to precompiled contract artifacts (JSON)",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar=REFTOKEN_ENVVAR_ARTIFACTS,
    default=None)

option_gas_limit = click.option(
    '--gas-limit',
    help="Block gas limit of the ephemeral chain",
    type=click.IntRange(min=1),
    envvar=REFTOKEN_ENVVAR_BACKEND_GAS_LIMIT,
    default=DEFAULT_BACKEND_GAS_LIMIT,
    show_default=True)

option_host = click.option(
    '--host',
    help="Interface the backend listens on",
    type=click.STRING,
    envvar=REFTOKEN_ENVVAR_BACKEND_HOST,
    default=DEFAULT_BACKEND_HOST,
    show_default=True)

option_port = click.option(
    '--port',
    help="Port the backend listens on (0 picks a free port)",
    type=click.IntRange(min=0, max=65535),
    envvar=REFTOKEN_ENVVAR_BACKEND_PORT,
    default=DEFAULT_BACKEND_PORT,
    show_default=True)

option_protocol = click.option(
    '--protocol',
    help="RPC transport",
    type=click.Choice(BACKEND_PROTOCOLS, case_sensitive=False),
    envvar=REFTOKEN_ENVVAR_BACKEND_PROTOCOL,
    default=DEFAULT_BACKEND_PROTOCOL,
    show_default=True)

option_startup_timeout = click.option(
    '--startup-timeout',
    help="Seconds to wait for the backend to answer",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_STARTUP_TIMEOUT,
    show_default=True)


def group_options(option_class, **options):
    argnames = sorted(list(options.keys()))
    decorators = list(options.values())

    if isinstance(option_class, str):
        option_name = option_class
        option_class = namedtuple(option_class, argnames)
    else:
        option_name = option_class.__option_name__

    def _decorator(func):

        @functools.wraps(func)
        def wrapper(**kwargs):
            to_group = {}
            for name in argnames:
                if name not in kwargs:
                    raise ValueError(
                        f"When trying to group CLI options into {option_name}, "
                        f"{name} was not found among arguments")
                to_group[name] = kwargs.pop(name)

            kwargs[option_name] = option_class(**to_group)
            return func(**kwargs)

        for dec in decorators:
            wrapper = dec(wrapper)

        return wrapper

    return _decorator

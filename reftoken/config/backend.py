import os
from pathlib import Path
from typing import Optional

from reftoken.config.base import BaseConfiguration
from reftoken.config.constants import (
    BACKEND_PROTOCOLS,
    DEFAULT_BACKEND_GAS_LIMIT,
    DEFAULT_BACKEND_HOST,
    DEFAULT_BACKEND_PORT,
    DEFAULT_BACKEND_PROTOCOL,
    DEFAULT_NUMBER_OF_ACCOUNTS,
    DEFAULT_STARTUP_TIMEOUT,
    REFTOKEN_ENVVAR_BACKEND_ACCOUNTS,
    REFTOKEN_ENVVAR_BACKEND_GAS_LIMIT,
    REFTOKEN_ENVVAR_BACKEND_HOST,
    REFTOKEN_ENVVAR_BACKEND_PORT,
    REFTOKEN_ENVVAR_BACKEND_PROTOCOL,
)

MAX_PORT = 65535


class BackendConfiguration(BaseConfiguration):
    """
    Connection parameters of an ephemeral chain backend.

    When `launch` is True the harness starts its own backend listening on `host:port`;
    otherwise it attaches to a backend that is already listening there.
    """

    NAME = "backend"
    VERSION = 1

    def __init__(self,
                 host: str = DEFAULT_BACKEND_HOST,
                 port: int = DEFAULT_BACKEND_PORT,
                 protocol: str = DEFAULT_BACKEND_PROTOCOL,
                 gas_limit: int = DEFAULT_BACKEND_GAS_LIMIT,
                 number_of_accounts: int = DEFAULT_NUMBER_OF_ACCOUNTS,
                 launch: bool = True,
                 startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
                 config_root: Optional[Path] = None,
                 filepath: Optional[Path] = None):

        super().__init__(config_root=config_root, filepath=filepath)
        self.host = host
        self.port = port
        self.protocol = protocol.lower() if isinstance(protocol, str) else protocol
        self.gas_limit = gas_limit
        self.number_of_accounts = number_of_accounts
        self.launch = launch
        self.startup_timeout = startup_timeout
        self.validate()

    def __repr__(self) -> str:
        r = f"{self.__class__.__name__}(endpoint={self.endpoint}, launch={self.launch})"
        return r

    def validate(self) -> None:
        if not self.host or not isinstance(self.host, str):
            raise self.InvalidConfiguration(f"Invalid backend host '{self.host}'")
        if not isinstance(self.port, int) or not 0 <= self.port <= MAX_PORT:
            raise self.InvalidConfiguration(f"Invalid backend port '{self.port}'")
        if self.protocol not in BACKEND_PROTOCOLS:
            raise self.InvalidConfiguration(
                f"Unsupported backend protocol '{self.protocol}'; choose from {', '.join(BACKEND_PROTOCOLS)}"
            )
        if not isinstance(self.gas_limit, int) or self.gas_limit <= 0:
            raise self.InvalidConfiguration(f"Gas limit must be a positive integer, got '{self.gas_limit}'")
        if not isinstance(self.number_of_accounts, int) or self.number_of_accounts < 1:
            raise self.InvalidConfiguration(f"At least one account is required, got '{self.number_of_accounts}'")
        if self.startup_timeout <= 0:
            raise self.InvalidConfiguration(f"Startup timeout must be positive, got '{self.startup_timeout}'")

    @property
    def endpoint(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    def static_payload(self) -> dict:
        payload = dict(
            host=self.host,
            port=self.port,
            protocol=self.protocol,
            gas_limit=self.gas_limit,
            number_of_accounts=self.number_of_accounts,
            launch=self.launch,
            startup_timeout=self.startup_timeout,
        )
        return payload

    @classmethod
    def from_environment(cls, **overrides) -> "BackendConfiguration":
        """Builds a configuration from REFTOKEN_BACKEND_* environment variables."""
        payload = dict()
        envvars = (
            (REFTOKEN_ENVVAR_BACKEND_HOST, 'host', str),
            (REFTOKEN_ENVVAR_BACKEND_PORT, 'port', int),
            (REFTOKEN_ENVVAR_BACKEND_PROTOCOL, 'protocol', str),
            (REFTOKEN_ENVVAR_BACKEND_GAS_LIMIT, 'gas_limit', int),
            (REFTOKEN_ENVVAR_BACKEND_ACCOUNTS, 'number_of_accounts', int),
        )
        for envvar, field, cast in envvars:
            value = os.environ.get(envvar)
            if value is None:
                continue
            try:
                payload[field] = cast(value)
            except ValueError:
                raise cls.InvalidConfiguration(f"Invalid value '{value}' for {envvar}")
        payload.update(overrides)
        return cls(**payload)

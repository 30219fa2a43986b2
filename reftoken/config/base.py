import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from constant_sorrow.constants import UNKNOWN_VERSION

from reftoken.config import constants


class BaseConfiguration(ABC):
    """
    Abstract base class for saving a JSON serializable version of the subclass's attributes
    to the disk exported by `static_payload`, and restoring a subclass instance from the
    written JSON file by passing the deserialized values to the subclass's constructor.

    `NAME`, `VERSION` and `def static_payload` are required for subclasses.

    Default behavior *avoids* overwriting an existing configuration file; pass
    `override=True` to `to_configuration_file` to replace it.
    """

    NAME = NotImplemented
    _CONFIG_FILE_EXTENSION = "json"

    INDENTATION = 2
    DEFAULT_CONFIG_ROOT = constants.DEFAULT_CONFIG_ROOT

    VERSION = NotImplemented

    class ConfigurationError(RuntimeError):
        pass

    class InvalidConfiguration(ConfigurationError):
        pass

    class OldVersion(InvalidConfiguration):
        def __init__(self, version: int, *args, **kwargs):
            self.version = version
            super().__init__(*args, **kwargs)

    def __init__(self, config_root: Optional[Path] = None, filepath: Optional[Path] = None):
        if self.NAME is NotImplemented:
            error = f"NAME must be implemented on BaseConfiguration subclass {self.__class__.__name__}"
            raise TypeError(error)

        self.config_root = Path(config_root or self.DEFAULT_CONFIG_ROOT)
        if not filepath:
            filepath = self.config_root / self.generate_filename()
        self.filepath = Path(filepath)

    @abstractmethod
    def static_payload(self) -> dict:
        """
        Return a dictionary of JSON serializable configuration key/value pairs
        matching the input specification of this classes __init__.
        """
        payload = dict()
        return payload

    @classmethod
    def generate_filename(cls) -> str:
        filename = f"{cls.NAME.lower()}.{cls._CONFIG_FILE_EXTENSION.lower()}"
        return filename

    @classmethod
    def default_filepath(cls, config_root: Optional[Path] = None) -> Path:
        default_path = Path(config_root or cls.DEFAULT_CONFIG_ROOT) / cls.generate_filename()
        return default_path

    @classmethod
    def peek(cls, filepath: Path, field: str) -> Union[str, int, None]:
        payload = cls._read_configuration_file(filepath=filepath)
        try:
            result = payload[field]
        except KeyError:
            raise cls.ConfigurationError(
                f"Cannot peek; No such configuration field '{field}', options are {list(payload.keys())}"
            )
        return result

    def to_configuration_file(self, filepath: Optional[Path] = None, override: bool = False) -> Path:
        filepath = Path(filepath or self.filepath)
        if filepath.exists() and not override:
            raise FileExistsError(f"{filepath} exists and override is not set.")
        filepath.parent.mkdir(parents=True, exist_ok=True, mode=0o755)
        with open(filepath, "w") as file:
            file.write(self.serialize())
        self.filepath = filepath
        return filepath

    @classmethod
    def from_configuration_file(cls, filepath: Optional[Path] = None, **overrides) -> "BaseConfiguration":
        filepath = Path(filepath or cls.default_filepath())
        payload = cls._read_configuration_file(filepath=filepath)
        payload.update(overrides)
        instance = cls(filepath=filepath, **payload)
        return instance

    @classmethod
    def _read_configuration_file(cls, filepath: Path) -> dict:
        """Reads `filepath` and returns the deserialized JSON payload dict."""
        with open(filepath, "r") as file:
            raw_contents = file.read()
        payload = cls.deserialize(raw_contents, payload_label=str(filepath))
        return payload

    def serialize(self, serializer=json.dumps) -> str:
        """Returns the JSON serialized output of `static_payload`"""
        payload = self.static_payload()
        payload["version"] = self.VERSION
        serialized_payload = serializer(payload, indent=self.INDENTATION)
        return serialized_payload

    @classmethod
    def deserialize(cls, payload: str, deserializer=json.loads, payload_label: Optional[str] = None) -> dict:
        """Returns the JSON deserialized content of `payload`"""
        try:
            deserialized_payload = deserializer(payload)
        except ValueError as e:
            raise cls.InvalidConfiguration(f"Malformed configuration {payload_label or ''}: {e}")
        version = deserialized_payload.pop("version", UNKNOWN_VERSION)
        if version != cls.VERSION:
            label = f"'{payload_label}' " if payload_label else ""
            raise cls.OldVersion(
                version,
                f"Configuration {label}is the wrong version "
                f"Expected version {cls.VERSION}; Got version {version}",
            )
        return deserialized_payload

import os

from reftoken.config.constants import TRUTHY_ENVVAR_VALUES
from reftoken.utilities.emitters import StdoutEmitter

FALSY_ENVVAR_VALUES = ("0", "false", "no", "off")


def get_env_bool(var_name: str, default: bool) -> bool:
    value = os.environ.get(var_name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in TRUTHY_ENVVAR_VALUES:
        return True
    if value in FALSY_ENVVAR_VALUES:
        return False
    raise ValueError(f"Invalid boolean value '{value}' for {var_name}")


def setup_emitter(general_config, banner: str = None) -> StdoutEmitter:
    emitter = general_config.emitter
    if banner:
        emitter.banner(banner)
    return emitter

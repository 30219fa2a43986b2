import os
from pathlib import Path

from appdirs import AppDirs

import reftoken

# Environment variables
REFTOKEN_ENVVAR_VERBOSE = "REFTOKEN_VERBOSE"
REFTOKEN_ENVVAR_ARTIFACTS = "REFTOKEN_ARTIFACTS"
REFTOKEN_ENVVAR_BACKEND_HOST = "REFTOKEN_BACKEND_HOST"
REFTOKEN_ENVVAR_BACKEND_PORT = "REFTOKEN_BACKEND_PORT"
REFTOKEN_ENVVAR_BACKEND_PROTOCOL = "REFTOKEN_BACKEND_PROTOCOL"
REFTOKEN_ENVVAR_BACKEND_GAS_LIMIT = "REFTOKEN_BACKEND_GAS_LIMIT"
REFTOKEN_ENVVAR_BACKEND_ACCOUNTS = "REFTOKEN_BACKEND_ACCOUNTS"

TRUTHY_ENVVAR_VALUES = ("1", "true", "yes", "on")

# Base Filepaths
REFTOKEN_PACKAGE = Path(reftoken.__file__).parent.resolve()
BASE_DIR = REFTOKEN_PACKAGE.parent.resolve()

# User Application Filepaths
APP_DIR = AppDirs(reftoken.__title__, reftoken.__author__)
DEFAULT_CONFIG_ROOT = Path(os.getenv('REFTOKEN_CONFIG_ROOT', default=APP_DIR.user_data_dir))
USER_LOG_DIR = Path(os.getenv('REFTOKEN_USER_LOG_DIR', default=APP_DIR.user_log_dir))
DEFAULT_LOG_FILENAME = "reftoken.log"
DEFAULT_JSON_LOG_FILENAME = "reftoken.json"
DEFAULT_ARTIFACTS_FILENAME = "artifacts.json"

#
# Backend Defaults
#

DEFAULT_BACKEND_HOST = "127.0.0.1"
DEFAULT_BACKEND_PORT = 8546
HTTP_PROTOCOL = "http"
WEBSOCKET_PROTOCOL = "ws"
BACKEND_PROTOCOLS = (HTTP_PROTOCOL, WEBSOCKET_PROTOCOL)
DEFAULT_BACKEND_PROTOCOL = HTTP_PROTOCOL
DEFAULT_BACKEND_GAS_LIMIT = 5_800_000
DEFAULT_NUMBER_OF_ACCOUNTS = 10
DEFAULT_STARTUP_TIMEOUT = 10  # seconds

#
# Harness Timeouts (seconds)
#

DEPLOYMENT_TIMEOUT = 20
MINT_TIMEOUT = 6
DEFAULT_TRANSACTION_GAS = 200_000


def verbose_logging_requested() -> bool:
    value = os.environ.get(REFTOKEN_ENVVAR_VERBOSE, "")
    return value.strip().lower() in TRUTHY_ENVVAR_VALUES

import click

from reftoken.__about__ import __version__
from reftoken.blockchain.eth.sol.__conf__ import SOLIDITY_COMPILER_VERSION
from reftoken.config.constants import DEFAULT_CONFIG_ROOT, USER_LOG_DIR

REFTOKEN_BANNER = rf"""
 ___  ___ ___ _____ ___  _  _____ _  _
| _ \| __| __|_   _/ _ \| |/ / __| \| |
|   /| _|| _|  | || (_) | ' <| _|| .` |
|_|_\|___|_|   |_| \___/|_|\_\___|_|\_|

reftoken v{__version__} (solc {SOLIDITY_COMPILER_VERSION})
"""


def echo_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(REFTOKEN_BANNER, bold=True)
    ctx.exit()


def echo_config_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(DEFAULT_CONFIG_ROOT.absolute()))
    ctx.exit()


def echo_logging_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(USER_LOG_DIR.absolute()))
    ctx.exit()

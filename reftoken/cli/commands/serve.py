import threading

import click

from reftoken.blockchain.eth.backend import EphemeralBackend
from reftoken.cli.config import group_backend_options, group_general_config
from reftoken.cli.painting.help import REFTOKEN_BANNER
from reftoken.cli.painting.scenarios import paint_backend_ready
from reftoken.cli.utils import setup_emitter
from reftoken.exceptions import StartupError


@click.command()
@group_backend_options
@group_general_config
def serve(general_config, backend_options):
    """Run an ephemeral chain backend until interrupted."""
    emitter = setup_emitter(general_config, banner=REFTOKEN_BANNER)
    config = backend_options.create_config()
    backend = EphemeralBackend(config=config)
    try:
        backend.start()
    except StartupError as e:
        if general_config.debug:
            raise
        emitter.error(e)
        raise click.Abort()

    paint_backend_ready(emitter, backend)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        emitter.echo("Stopping backend")
    finally:
        backend.stop()
    emitter.success(f"Backend at {config.host}:{backend.port} stopped")

from pathlib import Path

import click

from reftoken.blockchain.eth.sol.__conf__ import SOLIDITY_COMPILER_VERSION
from reftoken.blockchain.eth.sol.compile.compile import compile_sources, save_artifacts
from reftoken.blockchain.eth.sol.compile.constants import SOLIDITY_SOURCE_ROOT
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.blockchain.eth.sol.compile.types import SourceBundle, VersionString
from reftoken.cli.config import group_general_config
from reftoken.cli.utils import setup_emitter
from reftoken.config.constants import DEFAULT_ARTIFACTS_FILENAME, DEFAULT_CONFIG_ROOT


@click.command()
@click.option('--output', '-o', 'output_filepath',
              help="Where to write the contract artifacts",
              type=click.Path(dir_okay=False, path_type=Path),
              default=DEFAULT_CONFIG_ROOT / DEFAULT_ARTIFACTS_FILENAME,
              show_default=True)
@click.option('--solc-version',
              help="Solidity compiler version",
              type=click.STRING,
              default=SOLIDITY_COMPILER_VERSION,
              show_default=True)
@click.option('--source-root',
              help="Directory of solidity sources",
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=SOLIDITY_SOURCE_ROOT)
@group_general_config
def compile(general_config, output_filepath, solc_version, source_root):
    """Compile the harness contracts and write their artifacts as JSON."""
    emitter = setup_emitter(general_config)
    emitter.echo(f"Compiling {source_root} with solc {solc_version}", verbosity=1)
    try:
        artifacts = compile_sources(source_bundle=SourceBundle(base_path=source_root),
                                    version=VersionString(solc_version))
    except CompilationError as e:
        if general_config.debug:
            raise
        emitter.error(e)
        raise click.Abort()

    for contract_name in sorted(artifacts):
        emitter.echo(f"  {contract_name}", verbosity=2)
    filepath = save_artifacts(artifacts, filepath=output_filepath)
    emitter.success(f"Wrote {len(artifacts)} contract artifacts to {filepath}")

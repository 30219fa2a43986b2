import click

from reftoken.blockchain.eth.sol.compile.compile import get_contract_artifacts
from reftoken.blockchain.eth.sol.compile.exceptions import CompilationError
from reftoken.cli.config import group_backend_options, group_general_config
from reftoken.cli.options import option_artifacts
from reftoken.cli.painting.scenarios import paint_scenario_failure, paint_scenario_result
from reftoken.cli.utils import setup_emitter
from reftoken.exceptions import HarnessError
from reftoken.scenarios import SCENARIOS


@click.command()
@group_backend_options
@option_artifacts
@click.option('--scenario', 'scenario_names',
              help="Scenario to run; may be repeated. Runs all scenarios by default.",
              type=click.Choice(list(SCENARIOS)),
              multiple=True)
@group_general_config
def run(general_config, backend_options, artifacts, scenario_names):
    """Run the reference scenarios, each against a fresh backend."""
    emitter = setup_emitter(general_config)
    config = backend_options.create_config()
    try:
        contract_artifacts = get_contract_artifacts(artifacts_filepath=artifacts)
    except CompilationError as e:
        emitter.error(e)
        raise click.Abort()

    failures = 0
    for name in scenario_names or SCENARIOS:
        try:
            result = SCENARIOS[name](config=config, artifacts=contract_artifacts)
        except (HarnessError, AssertionError) as e:
            if general_config.debug:
                raise
            failures += 1
            paint_scenario_failure(emitter, name=name, error=e)
        else:
            paint_scenario_result(emitter, result=result)

    if failures:
        emitter.echo(f"{failures} scenario(s) failed", color='red', bold=True)
        raise click.exceptions.Exit(1)
    emitter.success("All scenarios passed")

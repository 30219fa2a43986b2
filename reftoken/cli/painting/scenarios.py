from reftoken.scenarios import ScenarioResult


def paint_scenario_result(emitter, result: ScenarioResult) -> None:
    emitter.success(f"✓ {result.name}: {result.description}")
    for field, value in result.observations.items():
        emitter.echo(f"    {field:<12} {value}", verbosity=2)


def paint_scenario_failure(emitter, name: str, error: BaseException) -> None:
    emitter.echo(f"✗ {name}: {error.__class__.__name__}: {error}", color='red')


def paint_backend_ready(emitter, backend) -> None:
    emitter.message(f"Ephemeral backend listening at {backend.endpoint}", color='green', bold=True)
    emitter.echo(f"Gas limit: {backend.config.gas_limit}")
    emitter.echo("Accounts:")
    for index, account in enumerate(backend.accounts):
        emitter.echo(f"  {index:>2}  {account}")
    emitter.echo("Press Ctrl+C to stop.")

"""seqgen CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from seqgen.core.config import GeneratorConfig, load_config
from seqgen.core.errors import CorruptStateError
from seqgen.core.generator import SequenceGenerator, build_generator
from seqgen.core.limiter import is_allowed, next_allowed_at
from seqgen.core.models import Blocked, Failure, outcome_adapter

_TIME_FMT = "%Y-%m-%d %H:%M:%S UTC"


def _config_options(func):
    """Options shared by every command that touches the state file."""
    func = click.option(
        "--base-url",
        default=None,
        help="Counter service base URL.",
    )(func)
    func = click.option(
        "--state-file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Path of the state file.",
    )(func)
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="YAML config file (default: ~/VS/Extensions/Data/seqgen.yaml).",
    )(func)
    return func


def _load(config_path: Path | None, state_file: Path | None, base_url: str | None) -> GeneratorConfig:
    return load_config(config_path, state_file=state_file, base_url=base_url)


def _make_generator(config: GeneratorConfig, mock: bool = False) -> SequenceGenerator:
    client = None
    if mock:
        from seqgen.counter.client import MockCounterClient

        client = MockCounterClient()
    return build_generator(config, client=client)


@click.group()
@click.version_option(package_name="seqgen")
def cli() -> None:
    """seqgen: rate-limited global script sequences."""


@cli.command()
@_config_options
@click.option("--mock", is_flag=True, default=False, help="Use a mock counter client.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the outcome as JSON.")
@click.option("--json-logs", is_flag=True, default=False, help="Output logs as JSON.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Log level.",
)
def generate(
    config_path: Path | None,
    state_file: Path | None,
    base_url: str | None,
    mock: bool,
    as_json: bool,
    json_logs: bool,
    log_level: str,
) -> None:
    """Generate a new sequence, or print the cached one during cooldown."""
    from seqgen.core.logging import configure_logging

    configure_logging(json_output=json_logs, level=log_level)

    config = _load(config_path, state_file, base_url)
    outcome = _make_generator(config, mock=mock).generate()

    if as_json:
        click.echo(outcome_adapter.dump_json(outcome).decode())
        if isinstance(outcome, Failure):
            raise SystemExit(1)
        return

    if isinstance(outcome, Failure):
        if outcome.token is not None:
            click.echo(outcome.token)
        click.echo(f"Error ({outcome.error.value}): {outcome.message}", err=True)
        raise SystemExit(1)

    click.echo(outcome.token)
    if isinstance(outcome, Blocked):
        click.echo(
            "You cannot generate a script sequence more than once within "
            f"{config.cooldown_s / 3600:g} hours. This is your last generated sequence; "
            f"a new one can be generated after {outcome.retry_at.strftime(_TIME_FMT)}.",
            err=True,
        )


@cli.command()
@_config_options
def last(config_path: Path | None, state_file: Path | None, base_url: str | None) -> None:
    """Print the last generated sequence without contacting the service."""
    config = _load(config_path, state_file, base_url)
    try:
        record = _make_generator(config).last()
    except CorruptStateError as e:
        raise click.ClickException(str(e)) from e

    if record is None:
        click.echo("No sequence has been generated yet.", err=True)
        raise SystemExit(1)

    click.echo(record.token)


@cli.command()
@_config_options
def status(config_path: Path | None, state_file: Path | None, base_url: str | None) -> None:
    """Show the cached sequence and when the next one may be generated."""
    from datetime import UTC, datetime

    config = _load(config_path, state_file, base_url)
    try:
        record = _make_generator(config).last()
    except CorruptStateError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"State file    : {config.state_file}")
    click.echo(f"Counter       : {config.base_url}")
    if record is None:
        click.echo("Last sequence : none")
        click.echo("Next allowed  : now")
        return

    click.echo(f"Last sequence : {record.token}")
    click.echo(f"Generated at  : {record.issued_at.strftime(_TIME_FMT)}")
    try:
        allowed = is_allowed(datetime.now(UTC), record, config.cooldown)
        retry_at = next_allowed_at(record, config.cooldown)
    except OverflowError as e:
        raise click.ClickException(
            f"Corrupt state file {config.state_file}: timestamp is out of range"
        ) from e

    if allowed:
        click.echo("Next allowed  : now")
    else:
        click.echo(f"Next allowed  : {retry_at.strftime(_TIME_FMT)}")


@cli.command()
@_config_options
@click.option("--mock", is_flag=True, default=False, help="Use a mock counter client.")
def ui(config_path: Path | None, state_file: Path | None, base_url: str | None, mock: bool) -> None:
    """Launch the terminal UI."""
    from seqgen.ui import run_app

    config = _load(config_path, state_file, base_url)
    run_app(_make_generator(config, mock=mock))

"""CLI entry point for cctest."""
from __future__ import annotations

import logging
import sys
from typing import Optional, Tuple

import click

from cctest import __version__
from cctest.core.errors import CctestError, ConfigurationError
from cctest.core.results import EXIT_CONFIG_ERROR
from cctest.plan import PlanOptions, apply_options, collect_fixtures, load_plan, run_plan


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool, config: Optional[str]) -> None:
        self.verbose = verbose
        self.config = config


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"cctest {__version__}")
    raise click.exceptions.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _config_error(exc: ConfigurationError) -> click.exceptions.Exit:
    click.echo(f"configuration error: {exc}", err=True)
    return click.exceptions.Exit(EXIT_CONFIG_ERROR)


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    help="Plan file (defaults to ./cctest.yaml when present).",
)
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the cctest version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Optional[str]) -> None:
    """Compile every succ*/fail* fixture and check the outcome.

    Running without a subcommand is the same as ``cctest run``.
    """

    _configure_logging(verbose)
    ctx.obj = CliState(verbose=verbose, config=config)
    if ctx.invoked_subcommand is None:
        with run.make_context("run", [], parent=ctx) as sub_ctx:
            run.invoke(sub_ctx)


@cli.command()
@click.option("--fixtures", "fixture_dir", type=str, help="Fixture directory override.")
@click.option(
    "--jobs",
    "-j",
    type=int,
    envvar="CCTEST_JOBS",
    help="Parallel compiler processes (default: CPU count).",
)
@click.option(
    "--timeout",
    "timeout_s",
    type=float,
    envvar="CCTEST_TIMEOUT",
    help="Per-fixture timeout in seconds.",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Require fail* fixtures to emit their expected diagnostic.",
)
@click.option("--filter", "filters", multiple=True, help="Only run fixtures whose filename matches this glob.")
@click.option("--compiler", type=str, help="Compiler executable override.")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    show_default=True,
    help="Report format.",
)
@click.option("--report-path", type=str, help="Write the JSON report to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.option("--require-fixtures", is_flag=True, help="Fail when no fixture matches.")
@click.pass_obj
def run(
    state: CliState,
    fixture_dir: Optional[str],
    jobs: Optional[int],
    timeout_s: Optional[float],
    strict: Optional[bool],
    filters: Tuple[str, ...],
    compiler: Optional[str],
    report_format: str,
    report_path: Optional[str],
    no_color: bool,
    require_fixtures: bool,
) -> None:
    """Compile all fixtures and report verdicts."""

    options = PlanOptions(
        fixture_dir=fixture_dir,
        jobs=jobs,
        timeout_s=timeout_s,
        strict=strict,
        filters=filters,
        compiler=compiler,
        require_fixtures=require_fixtures,
    )
    try:
        plan = load_plan(state.config)
        exit_code = run_plan(
            plan,
            options,
            report_format=report_format,
            report_path=report_path,
            use_color=not no_color,
        )
    except ConfigurationError as exc:
        raise _config_error(exc) from exc
    except CctestError as exc:  # pragma: no cover - CLI error translation
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(exit_code)


@cli.command("list")
@click.option("--fixtures", "fixture_dir", type=str, help="Fixture directory override.")
@click.option("--filter", "filters", multiple=True, help="Only list fixtures whose filename matches this glob.")
@click.pass_obj
def list_fixtures(state: CliState, fixture_dir: Optional[str], filters: Tuple[str, ...]) -> None:
    """List discovered fixtures and their expectations without compiling."""

    try:
        plan = apply_options(load_plan(state.config), PlanOptions(fixture_dir=fixture_dir, filters=filters))
        fixtures = collect_fixtures(plan)
    except ConfigurationError as exc:
        raise _config_error(exc) from exc
    for fixture in fixtures:
        markers = f"  markers={len(fixture.markers)}" if fixture.markers else ""
        click.echo(f"{fixture.expectation.value:<8} {fixture.path}{markers}")
    click.echo(f"{len(fixtures)} fixture(s)")


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="cctest", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

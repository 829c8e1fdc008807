"""
skill-router — CLI entrypoint.

Usage:
    python -m skillrouter.main --help
    skillrouter detect
    skillrouter route "implement a login page"
    skillrouter proposals draft
    skillrouter sync plan
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from skillrouter import __version__
from skillrouter.core.observability.logging_config import resolve_level, setup_logging

# Exit code for a request no trigger matched (caller should ask for clarification)
EXIT_NO_ROUTE = 2


@click.group()
@click.version_option(version=__version__, prog_name="skillrouter")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to skillrouter.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """skill-router — route a workspace to its capability module and keep it in sync."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Classify the workspace and look up its capability module."""
    from skillrouter.core.use_cases.detect import run_detect

    result = run_detect(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    detection = result.detection
    assert detection is not None and result.workspace is not None
    profile = detection.profile

    click.secho(f"\n🔍 Detection: {result.workspace.root}", fg="cyan", bold=True)
    click.echo(f"   Rules loaded: {detection.rules_loaded}")
    click.echo(f"   Signals: {len(detection.scan.signals)}")

    if profile.is_unknown:
        click.secho("   Stack: unknown", fg="yellow")
    else:
        click.secho(f"   Stack: {profile.id} ({profile.layer}, score {profile.score})", fg="green")
        for signal in profile.matched_signals:
            click.echo(f"     • {signal.ref}")

    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    click.echo()
    if result.next_step == "sync":
        assert result.module is not None
        click.echo(f"   📦 Module: {result.module.name} v{result.module.version}")
        click.echo("   Next: skillrouter sync plan")
    elif result.next_step == "create":
        click.echo("   📦 Module: not registered")
        click.echo("   Next: skillrouter proposals draft")
    click.echo()


@cli.command()
@click.argument("text")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-detect", is_flag=True, help="Route without classifying the workspace.")
@click.pass_context
def route(ctx: click.Context, text: str, as_json: bool, no_detect: bool) -> None:
    """Route a request to implementation, synchronization or quality-review."""
    from skillrouter.core.use_cases.route import route_request

    result = route_request(
        text,
        config_path=ctx.obj.get("config_path"),
        with_profile=not no_detect,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif result.error:
        click.secho(f"❌ {result.error}", fg="red")
    elif result.needs_clarification:
        click.secho("❔ No trigger matched — please clarify the request.", fg="yellow")
    else:
        decision = result.decision
        assert decision is not None and decision.matched_rule is not None
        click.secho(f"➡️  {decision.category}", fg="green", bold=True, nl=False)
        click.echo(f"  (matched '{decision.matched_rule.pattern}')")
        if decision.profile and not decision.profile.is_unknown:
            click.echo(f"   Stack: {decision.profile.id}")
        if result.module_name:
            click.echo(f"   Module: {result.module_name}")

    if result.error:
        sys.exit(1)
    if result.needs_clarification:
        sys.exit(EXIT_NO_ROUTE)


@cli.command()
@click.option("--source", type=click.Path(file_okay=False), default=None,
              help="Registry directory to install from (default: workspace registry).")
@click.option("--dest", type=click.Path(file_okay=False), default=None,
              help="Target directory (default: install_target setting).")
@click.pass_context
def install(ctx: click.Context, source: str | None, dest: str | None) -> None:
    """Copy capability modules into the runtime skills directory."""
    from skillrouter.core.config.loader import ConfigError, load_workspace
    from skillrouter.core.services.installer import install as run_install

    try:
        workspace = load_workspace(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    src = Path(source) if source else workspace.registry_path
    dst = Path(dest).expanduser() if dest else workspace.install_target

    code = run_install(src, dst)
    if code == 0:
        click.secho(f"✅ Installed modules from {src} to {dst}", fg="green")
    else:
        click.secho(f"❌ Install from {src} to {dst} failed", fg="red")
    sys.exit(code)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    """Start the JSON API server."""
    from skillrouter.core.config.loader import ConfigError, load_workspace
    from skillrouter.ui.web.server import create_app, run_server

    try:
        workspace = load_workspace(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    app = create_app(workspace_root=workspace.root, config_path=workspace.config_path)

    click.echo()
    click.secho("⚡ skill-router API", bold=True)
    click.echo(f"   Listening: http://{host}:{port}/api")
    click.echo(f"   Workspace: {workspace.root}")
    click.echo()

    run_server(app, host=host, port=port, debug=ctx.obj.get("debug", False))


# ── Register sub-command groups from skillrouter/ui/cli/ ──────────

from skillrouter.ui.cli.modules import modules  # noqa: E402
from skillrouter.ui.cli.proposals import proposals  # noqa: E402
from skillrouter.ui.cli.sync import sync  # noqa: E402

cli.add_command(modules)
cli.add_command(proposals)
cli.add_command(sync)


if __name__ == "__main__":
    cli()

"""
CLI commands for browsing the capability registry.

Thin wrappers over ``skillrouter.core.use_cases.modules``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def modules() -> None:
    """Modules — list and inspect registered capability modules."""


@modules.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List every registered module."""
    from skillrouter.core.use_cases.modules import list_modules

    result = list_modules(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.modules:
        click.secho(f"⚠️  No modules in {result.registry_path}", fg="yellow")
        return

    click.secho(f"📦 Modules ({len(result.modules)}):", fg="cyan", bold=True)
    for module in result.modules:
        libs = len(module.declared_libraries)
        click.echo(f"   {module.name:<32} v{module.version:<8} {libs} libraries")
    click.echo()


@modules.command("show")
@click.argument("layer")
@click.argument("stack")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--payload", is_flag=True, help="Include the module body.")
@click.pass_context
def show_cmd(ctx: click.Context, layer: str, stack: str, as_json: bool, payload: bool) -> None:
    """Show one module by LAYER and STACK."""
    from skillrouter.core.use_cases.modules import get_module

    result = get_module(layer, stack, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(include_payload=payload), indent=2, ensure_ascii=False))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    module = result.modules[0]
    click.secho(f"📦 {module.name}", fg="cyan", bold=True)
    click.echo(f"   Key:       {module.key}")
    click.echo(f"   Version:   {module.version}")
    click.echo(f"   Created:   {module.created_at}")
    click.echo(f"   Last sync: {module.last_sync_at or 'never'}")
    if module.description:
        click.echo(f"   {module.description}")

    click.echo(f"   Libraries ({len(module.declared_libraries)}):")
    for name, version in module.declared_libraries.items():
        click.echo(f"      {name:<30} {version}")

    if payload:
        click.echo()
        click.echo(module.payload)
    click.echo()

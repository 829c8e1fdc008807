"""
CLI commands for library sync plans.

``plan`` diffs the workspace's module against live dependencies and
saves the plan; ``approve`` or ``reject`` decides it later.
"""

from __future__ import annotations

import json
import sys

import click

from skillrouter.ui.cli.proposals import _default_actor

_ICONS = {"add": "➕", "update": "🔄", "remove": "➖"}


def _emit(result, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(1 if result.error else 0)


def _print_plan(plan) -> None:
    click.secho(f"🔁 {plan.id}", bold=True, nl=False)
    click.echo(f"  [{plan.status.value}]  {plan.key}")
    if plan.in_sync:
        click.secho("   ✅ In sync — no changes", fg="green")
        return
    for action in plan.actions:
        click.echo(f"   {_ICONS[action.op]} {action.describe()}")
    if plan.retained:
        click.echo(f"   Retained: {', '.join(plan.retained)}")


@click.group()
def sync() -> None:
    """Sync — plan and apply library updates to a module."""


@sync.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Diff the workspace's module against its live dependencies."""
    from skillrouter.core.use_cases.sync import plan_sync

    result = plan_sync(config_path=ctx.obj.get("config_path"))
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    _print_plan(result.plan)
    if result.saved:
        click.echo()
        click.echo(f"   Approve: skillrouter sync approve {result.plan.id}")
        click.echo(f"   Reject:  skillrouter sync reject {result.plan.id}")
    click.echo()


@sync.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include decided plans.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, show_all: bool, as_json: bool) -> None:
    """List sync plans awaiting a decision."""
    from skillrouter.core.use_cases.sync import list_plans

    result = list_plans(config_path=ctx.obj.get("config_path"), pending_only=not show_all)
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.plans:
        click.secho("✅ No pending sync plans", fg="green")
        return

    for p in result.plans:
        _print_plan(p)
    click.echo()


@sync.command()
@click.argument("plan_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, plan_id: str, as_json: bool) -> None:
    """Show one sync plan."""
    from skillrouter.core.use_cases.sync import show_plan

    result = show_plan(plan_id, config_path=ctx.obj.get("config_path"))
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    _print_plan(result.plan)
    click.echo()


@sync.command()
@click.argument("plan_id")
@click.option("--retain", multiple=True, help="Keep a library the plan would remove (repeatable).")
@click.option("--by", "approver", default=None, help="Who is approving (default: current user).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def approve(
    ctx: click.Context,
    plan_id: str,
    retain: tuple[str, ...],
    approver: str | None,
    as_json: bool,
) -> None:
    """Apply a sync plan to its module."""
    from skillrouter.core.use_cases.sync import approve_plan

    result = approve_plan(
        plan_id,
        approver=approver or _default_actor(),
        retain=retain,
        config_path=ctx.obj.get("config_path"),
    )
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    module = result.module
    click.secho(f"✅ Synced {module.name} → v{module.version}", fg="green")
    if result.plan.retained:
        click.echo(f"   Retained: {', '.join(result.plan.retained)}")


@sync.command()
@click.argument("plan_id")
@click.option("--by", "approver", default=None, help="Who is rejecting (default: current user).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reject(ctx: click.Context, plan_id: str, approver: str | None, as_json: bool) -> None:
    """Reject a sync plan. The module is left untouched."""
    from skillrouter.core.use_cases.sync import reject_plan

    result = reject_plan(
        plan_id,
        approver=approver or _default_actor(),
        config_path=ctx.obj.get("config_path"),
    )
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🚫 Rejected {plan_id}", fg="yellow")

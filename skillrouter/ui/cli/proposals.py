"""
CLI commands for creation proposals.

A proposal is drafted for a classified workspace with no module and
waits in the state directory until someone approves or rejects it.
"""

from __future__ import annotations

import getpass
import json
import sys

import click


def _default_actor() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "user"


def _emit(result, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(1 if result.error else 0)


def _print_request(request) -> None:
    state_color = {"created": "green", "cancelled": "red"}.get(request.state.value, "yellow")
    click.secho(f"📝 {request.id}", bold=True, nl=False)
    click.secho(f"  [{request.state.value}]", fg=state_color)
    proposal = request.proposal
    if proposal is not None:
        click.echo(f"   Module:    {proposal.module_name}")
        click.echo(f"   Key:       {proposal.key}")
        click.echo(f"   Libraries: {len(proposal.libraries)}")
    if request.last_error:
        click.secho(f"   Last error: {request.last_error}", fg="red")


@click.group()
def proposals() -> None:
    """Proposals — draft, review and decide new capability modules."""


@proposals.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def draft(ctx: click.Context, as_json: bool) -> None:
    """Draft a module proposal for the current workspace."""
    from skillrouter.core.use_cases.create import draft_proposal

    result = draft_proposal(config_path=ctx.obj.get("config_path"))
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    _print_request(result.request)
    click.echo()
    click.echo(f"   Approve: skillrouter proposals approve {result.request.id}")
    click.echo(f"   Reject:  skillrouter proposals reject {result.request.id}")
    click.echo()


@proposals.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include decided proposals.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, show_all: bool, as_json: bool) -> None:
    """List proposals awaiting a decision."""
    from skillrouter.core.use_cases.create import list_proposals

    result = list_proposals(config_path=ctx.obj.get("config_path"), pending_only=not show_all)
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.requests:
        click.secho("✅ No pending proposals", fg="green")
        return

    for request in result.requests:
        _print_request(request)
    click.echo()


@proposals.command()
@click.argument("request_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, request_id: str, as_json: bool) -> None:
    """Show a proposal with its template and history."""
    from skillrouter.core.use_cases.create import show_proposal

    result = show_proposal(request_id, config_path=ctx.obj.get("config_path"))
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    request = result.request
    _print_request(request)
    if request.proposal is not None:
        for name, version in request.proposal.libraries.items():
            click.echo(f"      {name:<30} {version}")
    click.echo("   History:")
    for step in request.history:
        note = f" — {step.note}" if step.note else ""
        click.echo(f"      {step.at}  {step.from_state.value} → {step.to_state.value} ({step.actor}){note}")
    click.echo()


@proposals.command()
@click.argument("request_id")
@click.option("--by", "approver", default=None, help="Who is approving (default: current user).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def approve(ctx: click.Context, request_id: str, approver: str | None, as_json: bool) -> None:
    """Approve a proposal and generate its module."""
    from skillrouter.core.use_cases.create import approve_proposal

    result = approve_proposal(
        request_id,
        approver=approver or _default_actor(),
        config_path=ctx.obj.get("config_path"),
    )
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        if result.missing_placeholders:
            click.echo(f"   Missing placeholders: {', '.join(result.missing_placeholders)}")
        if result.request is not None and result.request.is_pending:
            click.echo("   The proposal is still awaiting approval.")
        sys.exit(1)

    click.secho(f"✅ Created {result.module.name} v{result.module.version}", fg="green")


@proposals.command()
@click.argument("request_id")
@click.option("--by", "approver", default=None, help="Who is rejecting (default: current user).")
@click.option("--reason", default="", help="Why the proposal was rejected.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reject(
    ctx: click.Context,
    request_id: str,
    approver: str | None,
    reason: str,
    as_json: bool,
) -> None:
    """Reject a proposal. Nothing is created."""
    from skillrouter.core.use_cases.create import reject_proposal

    result = reject_proposal(
        request_id,
        approver=approver or _default_actor(),
        reason=reason,
        config_path=ctx.obj.get("config_path"),
    )
    _emit(result, as_json)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🚫 Rejected {request_id}", fg="yellow")

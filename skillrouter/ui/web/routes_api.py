"""
API routes — JSON endpoints over the use cases.

Blueprint: api_bp
Prefix: /api

Endpoints:
    GET  /detect                       — classify the workspace
    POST /route                        — route a request {"text": ...}
    GET  /modules                      — list registered modules
    GET  /modules/<layer>/<stack>      — one module (with payload)
    GET  /proposals                    — pending proposals (?all=1 for every one)
    POST /proposals                    — draft a proposal
    GET  /proposals/<id>               — one proposal
    POST /proposals/<id>/approve       — approve {"by": ...}
    POST /proposals/<id>/reject        — reject {"by": ..., "reason": ...}
    GET  /sync                         — pending sync plans (?all=1)
    POST /sync/plan                    — compute and save a sync plan
    GET  /sync/<id>                    — one sync plan
    POST /sync/<id>/approve            — apply {"by": ..., "retain": [...]}
    POST /sync/<id>/reject             — reject {"by": ...}

Failures come back as ``{"error": ...}`` with a 4xx status: 404 for an
unknown proposal, plan or module, 400 otherwise.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request

from skillrouter.core.use_cases import create, modules, route, sync
from skillrouter.core.use_cases.detect import run_detect

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _workspace_root() -> Path:
    return Path(current_app.config["WORKSPACE_ROOT"])


def _config_path() -> Path | None:
    p = current_app.config.get("CONFIG_PATH")
    return Path(p) if p else None


def _scope() -> dict:
    return {"config_path": _config_path(), "start_dir": _workspace_root()}


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _respond(result, status: int = 200, **kwargs):  # type: ignore[no-untyped-def]
    payload = result.to_dict(**kwargs)
    if getattr(result, "not_found", False):
        return jsonify(payload), 404
    if result.error:
        return jsonify(payload), 400
    return jsonify(payload), status


def _actor(data: dict) -> str:
    return str(data.get("by") or "api")


# ── Detect / route ──────────────────────────────────────────────────


@api_bp.route("/detect")
def api_detect():  # type: ignore[no-untyped-def]
    """Scan and classify the workspace."""
    return _respond(run_detect(**_scope()))


@api_bp.route("/route", methods=["POST"])
def api_route():  # type: ignore[no-untyped-def]
    """Route a free-form request to a workflow category."""
    text = _body().get("text")
    if not isinstance(text, str) or not text.strip():
        return jsonify({"error": "Missing 'text'"}), 400
    return _respond(route.route_request(text, **_scope()))


# ── Modules ─────────────────────────────────────────────────────────


@api_bp.route("/modules")
def api_modules():  # type: ignore[no-untyped-def]
    """List registered capability modules."""
    return _respond(modules.list_modules(**_scope()))


@api_bp.route("/modules/<layer>/<stack>")
def api_module(layer: str, stack: str):  # type: ignore[no-untyped-def]
    """One module, including its body."""
    result = modules.get_module(layer, stack, **_scope())
    if result.error and not result.modules:
        return jsonify(result.to_dict()), 404
    return _respond(result, include_payload=True)


# ── Proposals ───────────────────────────────────────────────────────


@api_bp.route("/proposals")
def api_proposals():  # type: ignore[no-untyped-def]
    """Pending creation proposals."""
    show_all = request.args.get("all", "") == "1"
    return _respond(create.list_proposals(pending_only=not show_all, **_scope()))


@api_bp.route("/proposals", methods=["POST"])
def api_proposal_draft():  # type: ignore[no-untyped-def]
    """Draft a proposal for the workspace's stack."""
    return _respond(create.draft_proposal(**_scope()), status=201)


@api_bp.route("/proposals/<request_id>")
def api_proposal(request_id: str):  # type: ignore[no-untyped-def]
    return _respond(create.show_proposal(request_id, **_scope()))


@api_bp.route("/proposals/<request_id>/approve", methods=["POST"])
def api_proposal_approve(request_id: str):  # type: ignore[no-untyped-def]
    """Approve a proposal and generate its module."""
    data = _body()
    return _respond(create.approve_proposal(request_id, approver=_actor(data), **_scope()))


@api_bp.route("/proposals/<request_id>/reject", methods=["POST"])
def api_proposal_reject(request_id: str):  # type: ignore[no-untyped-def]
    data = _body()
    return _respond(create.reject_proposal(
        request_id,
        approver=_actor(data),
        reason=str(data.get("reason", "")),
        **_scope(),
    ))


# ── Sync ────────────────────────────────────────────────────────────


@api_bp.route("/sync")
def api_plans():  # type: ignore[no-untyped-def]
    """Pending sync plans."""
    show_all = request.args.get("all", "") == "1"
    return _respond(sync.list_plans(pending_only=not show_all, **_scope()))


@api_bp.route("/sync/plan", methods=["POST"])
def api_plan():  # type: ignore[no-untyped-def]
    """Diff the workspace's module and save the plan when it has actions."""
    result = sync.plan_sync(**_scope())
    return _respond(result, status=201 if result.saved else 200)


@api_bp.route("/sync/<plan_id>")
def api_plan_show(plan_id: str):  # type: ignore[no-untyped-def]
    return _respond(sync.show_plan(plan_id, **_scope()))


@api_bp.route("/sync/<plan_id>/approve", methods=["POST"])
def api_plan_approve(plan_id: str):  # type: ignore[no-untyped-def]
    """Apply a plan. ``retain`` lists removals to skip."""
    data = _body()
    retain = data.get("retain") or []
    if not isinstance(retain, list):
        return jsonify({"error": "'retain' must be a list of library names"}), 400
    return _respond(sync.approve_plan(
        plan_id,
        approver=_actor(data),
        retain=[str(name) for name in retain],
        **_scope(),
    ))


@api_bp.route("/sync/<plan_id>/reject", methods=["POST"])
def api_plan_reject(plan_id: str):  # type: ignore[no-untyped-def]
    data = _body()
    return _respond(sync.reject_plan(plan_id, approver=_actor(data), **_scope()))

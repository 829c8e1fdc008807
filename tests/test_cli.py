"""
Tests for CLI commands — detect, route, proposals, sync, modules, install.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from skillrouter.main import EXIT_NO_ROUTE, cli

from conftest import write_package_json


@pytest.fixture
def config(react_workspace: Path, tmp_path: Path) -> Path:
    """skillrouter.yml for the React workspace, installing into tmp_path."""
    path = react_workspace / "skillrouter.yml"
    path.write_text(f"install_target: {tmp_path / 'runtime'}\n")
    return path


def _run(config: Path, *args: str):
    return CliRunner().invoke(cli, ["--config", str(config), *args])


def _create_module(config: Path) -> str:
    draft = _run(config, "proposals", "draft", "--json")
    assert draft.exit_code == 0, draft.output
    request_id = json.loads(draft.output)["request"]["id"]
    approve = _run(config, "proposals", "approve", request_id, "--by", "tester")
    assert approve.exit_code == 0, approve.output
    return request_id


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "skill-router" in result.output
        for command in ("detect", "route", "proposals", "sync", "modules", "install", "web"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        config = tmp_path / "skillrouter.yml"
        config.write_text("tie_break: sideways\n")
        result = _run(config, "detect")
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestDetect:
    def test_detect_json(self, config: Path):
        result = _run(config, "detect", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["profile"]["id"] == "react-vite"
        assert data["next_step"] == "create"
        assert data["module"] is None
        assert data["dependencies"]["react"] == "^18.2.0"

    def test_detect_human(self, config: Path):
        result = _run(config, "detect")
        assert result.exit_code == 0
        assert "react-vite" in result.output
        assert "proposals draft" in result.output

    def test_detect_after_create(self, config: Path):
        _create_module(config)
        data = json.loads(_run(config, "detect", "--json").output)
        assert data["next_step"] == "sync"
        assert data["module"]["name"] == "impl-frontend-react-vite"


class TestRoute:
    def test_route_match(self, config: Path):
        result = _run(config, "route", "please implement a login page", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["category"] == "implementation"
        assert data["profile"]["id"] == "react-vite"
        assert data["needs_clarification"] is False

    def test_route_no_match_exit_code(self, config: Path):
        result = _run(config, "route", "what time is it")
        assert result.exit_code == EXIT_NO_ROUTE
        assert "clarify" in result.output

    def test_route_without_detection(self, config: Path):
        data = json.loads(_run(config, "route", "refactor this", "--no-detect", "--json").output)
        assert data["category"] == "quality-review"
        assert data["profile"] is None


class TestProposals:
    def test_draft_does_not_create(self, config: Path, react_workspace: Path):
        result = _run(config, "proposals", "draft")
        assert result.exit_code == 0
        assert "awaiting_approval" in result.output
        assert not (react_workspace / "skills").exists()

        listed = json.loads(_run(config, "proposals", "list", "--json").output)
        assert len(listed["requests"]) == 1

    def test_approve_creates_module(self, config: Path, react_workspace: Path):
        request_id = _create_module(config)

        record = react_workspace / "skills" / "impl-frontend-react-vite" / "SKILL.md"
        assert record.is_file()

        shown = json.loads(_run(config, "proposals", "show", request_id, "--json").output)
        assert shown["request"]["state"] == "created"
        assert _run(config, "proposals", "list", "--json").output.strip() == "{}"

    def test_draft_when_module_exists(self, config: Path):
        _create_module(config)
        result = _run(config, "proposals", "draft")
        assert result.exit_code == 1
        assert "Run a sync instead" in result.output

    def test_reject(self, config: Path, react_workspace: Path):
        request_id = json.loads(_run(config, "proposals", "draft", "--json").output)["request"]["id"]
        result = _run(config, "proposals", "reject", request_id, "--reason", "later")
        assert result.exit_code == 0

        shown = json.loads(_run(config, "proposals", "show", request_id, "--json").output)
        assert shown["request"]["state"] == "cancelled"
        assert not (react_workspace / "skills").exists()

    def test_template_error_keeps_proposal_pending(self, config: Path, react_workspace: Path):
        templates = react_workspace / "templates"
        templates.mkdir()
        (templates / "skill.md").write_text("# {{NAME}} by {{AUTHOR}}\n")

        request_id = json.loads(_run(config, "proposals", "draft", "--json").output)["request"]["id"]
        result = _run(config, "proposals", "approve", request_id)

        assert result.exit_code == 1
        assert "AUTHOR" in result.output
        assert "still awaiting approval" in result.output
        shown = json.loads(_run(config, "proposals", "show", request_id, "--json").output)
        assert shown["request"]["state"] == "awaiting_approval"

    def test_unknown_id(self, config: Path):
        result = _run(config, "proposals", "approve", "create_missing")
        assert result.exit_code == 1


class TestSync:
    def test_in_sync_after_create(self, config: Path):
        _create_module(config)
        result = _run(config, "sync", "plan", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["plan"]["in_sync"] is True
        assert data["saved"] is False

    def test_plan_and_approve_with_retain(self, config: Path, react_workspace: Path):
        _create_module(config)
        write_package_json(
            react_workspace,
            {"react": "^19.0.0", "zustand": "^4.5.0"},
            dev={"vite": "^5.0.0"},
        )

        planned = _run(config, "sync", "plan", "--json")
        assert planned.exit_code == 0, planned.output
        plan = json.loads(planned.output)["plan"]
        assert [(a["op"], a["name"]) for a in plan["actions"]] == [
            ("add", "zustand"),
            ("update", "react"),
            ("remove", "react-dom"),
        ]

        approved = _run(config, "sync", "approve", plan["id"], "--retain", "react-dom")
        assert approved.exit_code == 0, approved.output
        assert "v1.0.1" in approved.output

        module = json.loads(
            _run(config, "modules", "show", "frontend", "react-vite", "--json").output
        )["modules"][0]
        assert module["declared_libraries"] == {
            "react": "^19.0.0",
            "react-dom": "^18.2.0",
            "vite": "^5.0.0",
            "zustand": "^4.5.0",
        }

    def test_reject_plan(self, config: Path, react_workspace: Path):
        _create_module(config)
        write_package_json(react_workspace, {"react": "^19.0.0"})
        plan_id = json.loads(_run(config, "sync", "plan", "--json").output)["plan"]["id"]

        assert _run(config, "sync", "reject", plan_id).exit_code == 0
        assert _run(config, "sync", "approve", plan_id).exit_code == 1

        shown = json.loads(_run(config, "sync", "show", plan_id, "--json").output)
        assert shown["plan"]["status"] == "rejected"

    def test_plan_without_module(self, config: Path):
        result = _run(config, "sync", "plan")
        assert result.exit_code == 1
        assert "Draft a proposal first" in result.output


class TestModulesAndInstall:
    def test_modules_list_empty(self, config: Path):
        result = _run(config, "modules", "list")
        assert result.exit_code == 0
        assert "No modules" in result.output

    def test_modules_show_missing(self, config: Path):
        assert _run(config, "modules", "show", "backend", "flask").exit_code == 1

    def test_install(self, config: Path, tmp_path: Path):
        _create_module(config)
        result = _run(config, "install")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "runtime" / "impl-frontend-react-vite" / "SKILL.md").is_file()

    def test_install_missing_source(self, config: Path, tmp_path: Path):
        result = _run(config, "install", "--source", str(tmp_path / "none"))
        assert result.exit_code == 1

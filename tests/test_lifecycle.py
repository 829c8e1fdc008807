"""
Tests for the creation lifecycle — approval gating, failures, rejection.
"""

from pathlib import Path

import pytest

from skillrouter.core.errors import (
    InvalidTransition,
    RegistryConflict,
    RegistryError,
    SkillRouterError,
    TemplateError,
)
from skillrouter.core.models.lifecycle import LifecycleState
from skillrouter.core.models.module import CapabilityModule
from skillrouter.core.models.signal import Signal
from skillrouter.core.models.stack import StackProfile
from skillrouter.core.persistence.audit import AuditWriter
from skillrouter.core.persistence.registry import CapabilityRegistry
from skillrouter.core.services import templates
from skillrouter.core.services.lifecycle import LifecycleManager

DEPS = {"react": "^18.2.0", "react-dom": "^18.2.0"}


@pytest.fixture
def profile() -> StackProfile:
    return StackProfile(
        id="react-vite",
        layer="frontend",
        score=2,
        matched_signals=[
            Signal.file("vite.config.*", source="vite.config.ts"),
            Signal.dependency("react", "^18.2.0", source="package.json"),
        ],
    )


@pytest.fixture
def audit(tmp_path: Path) -> AuditWriter:
    return AuditWriter(tmp_path / "state" / "audit.ndjson")


@pytest.fixture
def manager(registry: CapabilityRegistry, tmp_path: Path, audit: AuditWriter) -> LifecycleManager:
    return LifecycleManager(registry, templates_dir=tmp_path / "templates", audit=audit)


class TestOpen:
    def test_stops_at_awaiting_approval(
        self, manager: LifecycleManager, registry: CapabilityRegistry, profile: StackProfile
    ):
        request = manager.open(profile, DEPS)

        assert request.state == LifecycleState.AWAITING_APPROVAL
        assert request.is_pending
        assert request.proposal.module_name == "impl-frontend-react-vite"
        assert request.proposal.libraries == DEPS
        assert [t.to_state for t in request.history] == [
            LifecycleState.PROPOSAL_DRAFTED,
            LifecycleState.AWAITING_APPROVAL,
        ]
        assert registry.lookup(request.key) is None

    def test_uses_packaged_template_by_default(self, manager: LifecycleManager, profile: StackProfile):
        request = manager.open(profile, DEPS)
        assert Path(request.proposal.template) == templates.DEFAULT_TEMPLATE_FILE

    def test_unknown_profile(self, manager: LifecycleManager):
        with pytest.raises(ValueError):
            manager.open(StackProfile.unknown(), {})

    def test_existing_module(
        self,
        manager: LifecycleManager,
        registry: CapabilityRegistry,
        react_module: CapabilityModule,
        profile: StackProfile,
    ):
        registry.insert(react_module)
        with pytest.raises(RegistryConflict):
            manager.open(profile, DEPS)


class TestApprove:
    def test_creates_module(
        self, manager: LifecycleManager, registry: CapabilityRegistry, profile: StackProfile
    ):
        request = manager.open(profile, DEPS)
        module = manager.approve(request, approver="alice")

        assert request.state == LifecycleState.CREATED
        assert request.is_terminal
        assert module.version == "1.0.0"
        assert module.declared_libraries == DEPS
        assert module.payload.startswith("# impl-frontend-react-vite\n")
        assert "`react-vite`" in module.payload
        assert "`dep:react`" in module.payload
        assert "{{" not in module.payload
        assert registry.lookup(request.key) == module

        approved = next(t for t in request.history if t.to_state == LifecycleState.APPROVED)
        assert approved.actor == "alice"

    def test_layer_template_preferred(
        self, manager: LifecycleManager, tmp_path: Path, profile: StackProfile
    ):
        tdir = tmp_path / "templates"
        tdir.mkdir()
        (tdir / "frontend.md").write_text("# {{NAME}} for {{STACK}}\n")

        module = manager.approve(manager.open(profile, DEPS))
        assert module.payload == "# impl-frontend-react-vite for react-vite\n"

    def test_template_error_reverts(
        self,
        manager: LifecycleManager,
        registry: CapabilityRegistry,
        tmp_path: Path,
        profile: StackProfile,
        audit: AuditWriter,
    ):
        tdir = tmp_path / "templates"
        tdir.mkdir()
        (tdir / "skill.md").write_text("# {{NAME}}\n\nOwner: {{OWNER}}\n")

        request = manager.open(profile, DEPS)
        with pytest.raises(TemplateError) as exc:
            manager.approve(request)

        assert exc.value.missing == ["OWNER"]
        assert request.state == LifecycleState.AWAITING_APPROVAL
        assert request.last_error == str(exc.value)
        assert registry.lookup(request.key) is None
        assert audit.read_all()[-1].status == "failed"

    def test_retry_after_fixing_template(
        self, manager: LifecycleManager, tmp_path: Path, profile: StackProfile
    ):
        tdir = tmp_path / "templates"
        tdir.mkdir()
        template = tdir / "skill.md"
        template.write_text("{{MISSING}}")

        request = manager.open(profile, DEPS)
        with pytest.raises(TemplateError):
            manager.approve(request)

        template.write_text("# {{NAME}}\n")
        module = manager.approve(request)
        assert request.state == LifecycleState.CREATED
        assert request.last_error is None
        assert module.payload == "# impl-frontend-react-vite\n"

    def test_conflict_on_insert_reverts(
        self,
        manager: LifecycleManager,
        registry: CapabilityRegistry,
        react_module: CapabilityModule,
        profile: StackProfile,
    ):
        request = manager.open(profile, DEPS)
        registry.insert(react_module)

        with pytest.raises(RegistryConflict):
            manager.approve(request)
        assert request.state == LifecycleState.AWAITING_APPROVAL
        assert registry.lookup(request.key) == react_module

    def test_write_failure_reverts(
        self, tmp_path: Path, profile: StackProfile, audit: AuditWriter
    ):
        root = tmp_path / "skills"
        manager = LifecycleManager(CapabilityRegistry(root), audit=audit)
        request = manager.open(profile, DEPS)
        root.write_text("not a directory")

        with pytest.raises(RegistryError):
            manager.approve(request)

        assert request.state == LifecycleState.AWAITING_APPROVAL
        assert request.last_error
        assert audit.read_all()[-1].status == "failed"

        manager.reject(request, reason="registry is broken")
        assert request.state == LifecycleState.CANCELLED

    def test_undecodable_template_reverts(
        self, manager: LifecycleManager, tmp_path: Path, profile: StackProfile
    ):
        tdir = tmp_path / "templates"
        tdir.mkdir()
        (tdir / "skill.md").write_bytes(b"# \xff\xfe {{NAME}}\n")

        request = manager.open(profile, DEPS)
        with pytest.raises(UnicodeDecodeError):
            manager.approve(request)
        assert request.state == LifecycleState.AWAITING_APPROVAL

    def test_missing_proposal(self, manager: LifecycleManager, profile: StackProfile):
        request = manager.open(profile, DEPS)
        request.proposal = None

        with pytest.raises(SkillRouterError, match="no drafted proposal"):
            manager.approve(request)
        assert request.state == LifecycleState.AWAITING_APPROVAL

    def test_approve_twice_rejected(self, manager: LifecycleManager, profile: StackProfile):
        request = manager.open(profile, DEPS)
        manager.approve(request)
        with pytest.raises(InvalidTransition):
            manager.approve(request)


class TestReject:
    def test_ends_cancelled(
        self,
        manager: LifecycleManager,
        registry: CapabilityRegistry,
        profile: StackProfile,
        audit: AuditWriter,
    ):
        request = manager.open(profile, DEPS)
        manager.reject(request, approver="bob", reason="not now")

        assert request.state == LifecycleState.CANCELLED
        assert request.is_terminal
        assert registry.lookup(request.key) is None
        rejected = next(t for t in request.history if t.to_state == LifecycleState.REJECTED)
        assert rejected.actor == "bob"
        assert rejected.note == "not now"
        assert [e.status for e in audit.read_all()] == ["drafted", "cancelled"]

    def test_cannot_approve_after_reject(self, manager: LifecycleManager, profile: StackProfile):
        request = manager.open(profile, DEPS)
        manager.reject(request)
        with pytest.raises(InvalidTransition):
            manager.approve(request)

    def test_cannot_reject_created(self, manager: LifecycleManager, profile: StackProfile):
        request = manager.open(profile, DEPS)
        manager.approve(request)
        with pytest.raises(InvalidTransition):
            manager.reject(request)


class TestTemplates:
    def test_render_reports_every_missing(self):
        with pytest.raises(TemplateError) as exc:
            templates.render("{{A}} {{B}} {{A}} {{C}}", {"B": "x"})
        assert exc.value.missing == ["A", "C"]

    def test_render_allows_spaces(self):
        assert templates.render("{{ NAME }}!", {"NAME": "hi"}) == "hi!"

    def test_lowercase_is_not_a_placeholder(self):
        assert templates.render("{{name}}", {}) == "{{name}}"

"""
Tests for the request router — priority, normalization, no-match.
"""

import pytest

from skillrouter.core.config.rules_loader import load_triggers
from skillrouter.core.data import DEFAULT_TRIGGERS_FILE
from skillrouter.core.models.routing import RouteCategory, TriggerRule
from skillrouter.core.models.stack import StackProfile
from skillrouter.core.services.router import Router, normalize


@pytest.fixture
def router() -> Router:
    return Router(load_triggers(DEFAULT_TRIGGERS_FILE))


class TestNormalize:
    def test_lower_strip_collapse(self):
        assert normalize("  Sync   THE\tSkill \n") == "sync the skill"


class TestDefaultTriggers:
    @pytest.mark.parametrize("text,category", [
        ("Please implement a login page", RouteCategory.IMPLEMENTATION),
        ("can you refactor the login implementation", RouteCategory.QUALITY_REVIEW),
        ("sync skill with package.json", RouteCategory.SYNCHRONIZATION),
        ("로그인 페이지 구현해줘", RouteCategory.IMPLEMENTATION),
        ("스킬 동기화 해줘", RouteCategory.SYNCHRONIZATION),
        ("이 코드 리팩토링 해줘", RouteCategory.QUALITY_REVIEW),
    ])
    def test_categories(self, router: Router, text: str, category: RouteCategory):
        decision = router.route(text)
        assert decision.matched
        assert decision.category == category

    def test_no_match(self, router: Router):
        decision = router.route("what's the weather like today?")
        assert not decision.matched
        assert decision.category is None
        assert decision.matched_rule is None

    def test_empty_text(self, router: Router):
        assert not router.route("   ").matched


class TestPriority:
    def test_lower_priority_value_first(self):
        router = Router([
            TriggerRule(pattern="build", category=RouteCategory.IMPLEMENTATION, priority=50),
            TriggerRule(pattern="review", category=RouteCategory.QUALITY_REVIEW, priority=5),
        ])
        decision = router.route("review the build")
        assert decision.category == RouteCategory.QUALITY_REVIEW

    def test_equal_priority_keeps_table_order(self):
        router = Router([
            TriggerRule(pattern="page", category=RouteCategory.IMPLEMENTATION, priority=10),
            TriggerRule(pattern="review", category=RouteCategory.QUALITY_REVIEW, priority=10),
        ])
        assert router.route("review page").category == RouteCategory.IMPLEMENTATION

    def test_pattern_normalized(self):
        router = Router([
            TriggerRule(pattern="  Code   Review ", category=RouteCategory.QUALITY_REVIEW),
        ])
        assert router.route("please do a CODE REVIEW").matched

    def test_exactly_one_category(self, router: Router):
        decision = router.route("implement then refactor then sync skill")
        assert decision.category == RouteCategory.SYNCHRONIZATION
        assert decision.matched_rule.pattern == "sync skill"


class TestProfile:
    def test_profile_carried(self, router: Router):
        profile = StackProfile(id="react-vite", layer="frontend", score=2)
        assert router.route("implement it", profile).profile == profile
        assert router.route("hello", profile).profile == profile

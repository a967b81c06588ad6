"""Tests for target resolution and descriptors.

Covers the selector-over-target rule, every target strategy, nth
precedence, descriptor rendering, and the missing-target error.
"""

from __future__ import annotations

import pytest

from demo_narrator.playback.errors import TargetResolutionError
from demo_narrator.playback.targets import (
    describe_step_target,
    describe_target,
    resolve_endpoint,
    resolve_target,
)
from demo_narrator.spec.models import ClickStep, DragAndDropStep, DragEndpoint, NavigateStep, Target


class TestDescribeTarget:
    """Descriptor rendering is deterministic and page-free."""

    def test_raw_selector(self):
        assert describe_target("#btn", None) == "#btn"

    def test_raw_selector_with_nth(self):
        assert describe_target("li.item", None, 2) == "li.item[nth=2]"

    def test_role_with_name_and_nth(self):
        target = Target(by="role", value="button", name="Save", nth=1)
        assert describe_target(None, target) == 'target(role:button[name="Save"])[nth=1]'

    def test_exact_flag_inside_parentheses(self):
        target = Target(by="text", value="Sign in", exact=True)
        assert describe_target(None, target) == "target(text:Sign in[exact])"

    def test_quotes_in_name_are_escaped(self):
        target = Target(by="role", value="link", name='Say "hi"')
        assert describe_target(None, target) == 'target(role:link[name="Say \\"hi\\""])'

    def test_target_nth_wins_over_step_nth(self):
        target = Target(by="testId", value="row", nth=3)
        assert describe_target(None, target, 1) == "target(testId:row)[nth=3]"

    def test_step_nth_used_when_target_has_none(self):
        target = Target(by="testId", value="row")
        assert describe_target(None, target, 1) == "target(testId:row)[nth=1]"

    def test_selector_wins_over_target(self):
        target = Target(by="role", value="button", name="Save")
        assert describe_target("#save", target) == "#save"

    def test_nothing_specified(self):
        assert describe_target(None, None) is None


class TestResolveTarget:
    """Locator construction dispatches to the right page factory."""

    def test_raw_selector_uses_page_locator(self, page_factory):
        page = page_factory()
        resolved = resolve_target(page, "#btn", None)
        page.locator.assert_called_once_with("#btn")
        assert resolved.descriptor == "#btn"

    def test_selector_wins_when_both_present(self, page_factory):
        page = page_factory()
        resolve_target(page, "#btn", Target(by="role", value="button"))
        page.locator.assert_called_once_with("#btn")
        page.get_by_role.assert_not_called()

    def test_role_passes_name_and_exact(self, page_factory):
        page = page_factory()
        resolve_target(page, None, Target(by="role", value="button", name="Save", exact=True))
        page.get_by_role.assert_called_once_with("button", exact=True, name="Save")

    def test_role_without_name(self, page_factory):
        page = page_factory()
        resolve_target(page, None, Target(by="role", value="dialog"))
        page.get_by_role.assert_called_once_with("dialog")

    def test_css_target(self, page_factory):
        page = page_factory()
        resolve_target(page, None, Target(by="css", value=".card"))
        page.locator.assert_called_once_with(".card")

    def test_test_id_target(self, page_factory):
        page = page_factory()
        resolve_target(page, None, Target(by="testId", value="submit"))
        page.get_by_test_id.assert_called_once_with("submit")

    @pytest.mark.parametrize("by,factory", [
        ("text", "get_by_text"),
        ("label", "get_by_label"),
        ("placeholder", "get_by_placeholder"),
        ("altText", "get_by_alt_text"),
        ("title", "get_by_title"),
    ])
    def test_text_like_targets(self, page_factory, by, factory):
        page = page_factory()
        resolve_target(page, None, Target(by=by, value="Email", exact=False))
        getattr(page, factory).assert_called_once_with("Email", exact=False)

    def test_nth_narrows_locator(self, page_factory, locator_factory):
        locator = locator_factory()
        page = page_factory(locator)
        resolve_target(page, None, Target(by="testId", value="row", nth=2), nth=5)
        locator.nth.assert_called_once_with(2)

    def test_no_nth_leaves_locator_alone(self, page_factory, locator_factory):
        locator = locator_factory()
        page = page_factory(locator)
        resolve_target(page, "#btn", None)
        locator.nth.assert_not_called()

    def test_missing_selector_and_target_raises(self, page_factory):
        with pytest.raises(TargetResolutionError) as exc_info:
            resolve_target(page_factory(), None, None, action="click")
        assert str(exc_info.value) == 'Step "click" requires "selector" or supported "target"'
        assert exc_info.value.action == "click"

    def test_endpoint_error_names_the_side(self, page_factory):
        endpoint = DragEndpoint.model_construct(selector=None, target=None, nth=None)
        with pytest.raises(TargetResolutionError, match="dragAndDrop.to"):
            resolve_endpoint(page_factory(), endpoint, "to")


class TestDescribeStepTarget:
    def test_click_step(self):
        assert describe_step_target(ClickStep(selector="#btn")) == "#btn"

    def test_step_without_target_is_empty(self):
        assert describe_step_target(NavigateStep(url="/")) == ""

    def test_drag_and_drop_joins_both_sides(self):
        step = DragAndDropStep.model_validate({
            "action": "dragAndDrop",
            "from": {"selector": "#card"},
            "to": {"target": {"by": "testId", "value": "done"}},
        })
        assert describe_step_target(step) == "#card -> target(testId:done)"

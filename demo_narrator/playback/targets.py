"""Resolve step targets into Playwright locators and readable descriptors.

WHY: Steps name their element either with a raw selector or with a
structured target (role + accessible name, test id, label text, ...).
Handlers need a live Locator; events and error messages need a stable,
human-readable string that says which element was meant. Both must
come from the same resolution so they never disagree.

HOW: resolve_target() applies the rules in order. A raw selector wins;
otherwise dispatch on ``by`` to the matching page.get_by_* factory.
It then narrows with .nth() when a repetition index is present.
describe_target() renders the same inputs without touching the page.

RULES:
- Raw selector wins over target when both are present
- target.nth wins over the step-level nth
- Descriptors are deterministic, e.g. target(role:button[name="Save"])[nth=1]
- Missing selector and target raises TargetResolutionError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from playwright.async_api import Locator, Page

from demo_narrator.playback.errors import TargetResolutionError
from demo_narrator.spec.models import DragAndDropStep, DragEndpoint, Step, Target

# Text-like strategies share the (text, exact=) calling convention.
_TEXT_FACTORIES = {
    "text": "get_by_text",
    "label": "get_by_label",
    "placeholder": "get_by_placeholder",
    "altText": "get_by_alt_text",
    "title": "get_by_title",
}


@dataclass(frozen=True)
class ResolvedTarget:
    locator: Locator
    descriptor: str


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _effective_nth(target: Target | None, nth: int | None) -> int | None:
    if target is not None and target.nth is not None:
        return target.nth
    return nth


def describe_target(
    selector: str | None,
    target: Target | None,
    nth: int | None = None,
) -> str | None:
    """Render a deterministic descriptor, or None when nothing is specified."""
    if selector:
        base = selector
    elif target is not None:
        inner = f"{target.by}:{target.value}"
        if target.by == "role" and target.name is not None:
            inner += f"[name={_quote(target.name)}]"
        if target.exact:
            inner += "[exact]"
        base = f"target({inner})"
    else:
        return None

    index = _effective_nth(target if not selector else None, nth)
    if index is not None:
        base += f"[nth={index}]"
    return base


def _build_locator(page: Page, target: Target) -> Any:
    exact: dict[str, Any] = {"exact": target.exact} if target.exact is not None else {}
    if target.by == "css":
        return page.locator(target.value)
    if target.by == "testId":
        return page.get_by_test_id(target.value)
    if target.by == "role":
        kwargs = dict(exact)
        if target.name is not None:
            kwargs["name"] = target.name
        return page.get_by_role(target.value, **kwargs)
    factory = getattr(page, _TEXT_FACTORIES[target.by])
    return factory(target.value, **exact)


def resolve_target(
    page: Page,
    selector: str | None,
    target: Target | None,
    nth: int | None = None,
    *,
    action: str = "step",
) -> ResolvedTarget:
    """Build a locator and its descriptor from a selector or structured target.

    Args:
        page: Playwright page the locator is bound to.
        selector: Raw selector; wins when present.
        target: Structured target used when there is no selector.
        nth: Step-level repetition index (0-based).
        action: Step action name, used in the error message.

    Raises:
        TargetResolutionError: neither selector nor target is present.
    """
    if selector:
        locator = page.locator(selector)
        index = nth
    elif target is not None:
        locator = _build_locator(page, target)
        index = _effective_nth(target, nth)
    else:
        raise TargetResolutionError(action)

    if index is not None:
        locator = locator.nth(index)
    return ResolvedTarget(locator=locator, descriptor=describe_target(selector, target, nth))


def resolve_step_target(page: Page, step: Step) -> ResolvedTarget:
    return resolve_target(page, step.selector, step.target, step.nth, action=step.action)


def resolve_endpoint(page: Page, endpoint: DragEndpoint, label: str) -> ResolvedTarget:
    return resolve_target(
        page, endpoint.selector, endpoint.target, endpoint.nth, action=f"dragAndDrop.{label}"
    )


def describe_step_target(step: Step) -> str:
    """Descriptor used in events and error messages ("" when the step has no target)."""
    if isinstance(step, DragAndDropStep):
        source = describe_target(step.from_.selector, step.from_.target, step.from_.nth)
        dest = describe_target(step.to.selector, step.to.target, step.to.nth)
        return f"{source or 'from(?)'} -> {dest or 'to(?)'}"
    return describe_target(step.selector, step.target, step.nth) or ""

"""Step handlers: one coroutine per step kind.

WHY: Each step kind drives the browser differently, but all of them
must produce exactly one ActionEvent and share the same readiness,
timeout, and visual-feedback conventions. One small handler per kind
keeps each behaviour readable and individually testable.

HOW: ACTION_HANDLERS maps every StepAction to its handler. execute_step()
looks the step's kind up and awaits the handler, which returns the
finished ActionEvent. The registry is checked against StepAction at
import time, so adding a step kind without a handler fails immediately.

RULES:
- Handlers raise on failure; they never catch driver errors
- The start timestamp is taken before any waiting for the target
- Interactive handlers present the target (cursor, spotlight, focus) before acting
- Only navigate re-applies overlays and scans for secrets
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from urllib.parse import urljoin

from playwright.async_api import Locator
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from demo_narrator.core.ir import ActionEvent, BoundingBox
from demo_narrator.playback.actions import (
    PlaybackContext,
    bounding_box,
    build_event,
    ensure_target_attached,
    ensure_target_ready,
    now_ms,
    step_timeout_ms,
)
from demo_narrator.playback.errors import InvalidStepError, StepAssertionError
from demo_narrator.playback.overlays import check_secrets
from demo_narrator.playback.targets import resolve_endpoint, resolve_step_target
from demo_narrator.playback.visuals import click_feedback, flash_spotlight, pulse_focus
from demo_narrator.spec.models import (
    AssertStep,
    BackStep,
    CheckStep,
    ClickStep,
    DragAndDropStep,
    ForwardStep,
    HoverStep,
    NavigateStep,
    PressStep,
    ScreenshotStep,
    ScrollStep,
    SelectStep,
    Step,
    StepAction,
    TypeStep,
    UncheckStep,
    UploadStep,
    WaitStep,
)

ASSERT_POLL_INTERVAL_MS = 200

Handler = Callable[[PlaybackContext, Step], Awaitable[ActionEvent]]


async def _present(ctx: PlaybackContext, locator: Locator, timeout_ms: float) -> BoundingBox | None:
    box = await bounding_box(locator, timeout_ms)
    await ctx.move_cursor_to(box)
    await flash_spotlight(ctx.page, box)
    await pulse_focus(ctx.page, box)
    return box


# ---------------------------------------------------------------------------
# Page-level steps
# ---------------------------------------------------------------------------


async def handle_navigate(ctx: PlaybackContext, step: NavigateStep) -> ActionEvent:
    start = now_ms()
    url = urljoin(ctx.base_url, step.url) if ctx.base_url else step.url
    await ctx.page.goto(url, wait_until=step.wait_until, timeout=step_timeout_ms(step))
    await ctx.reinject_overlays()
    event = build_event(step, start)
    await check_secrets(ctx.page, ctx.secret_patterns)
    return event


async def handle_back(ctx: PlaybackContext, step: BackStep) -> ActionEvent:
    start = now_ms()
    await ctx.page.go_back(timeout=step_timeout_ms(step))
    return build_event(step, start)


async def handle_forward(ctx: PlaybackContext, step: ForwardStep) -> ActionEvent:
    start = now_ms()
    await ctx.page.go_forward(timeout=step_timeout_ms(step))
    return build_event(step, start)


async def handle_press(ctx: PlaybackContext, step: PressStep) -> ActionEvent:
    start = now_ms()
    await ctx.page.keyboard.press(step.key)
    return build_event(step, start)


async def handle_wait(ctx: PlaybackContext, step: WaitStep) -> ActionEvent:
    start = now_ms()
    await ctx.page.wait_for_timeout(step.timeout)
    return build_event(step, start)


async def handle_screenshot(ctx: PlaybackContext, step: ScreenshotStep) -> ActionEvent:
    start = now_ms()
    if "/" in step.name or "\\" in step.name:
        raise InvalidStepError(f'Screenshot name must not contain path separators: "{step.name}"')
    directory = ctx.screenshot_dir or Path.cwd()
    directory.mkdir(parents=True, exist_ok=True)
    await ctx.page.screenshot(path=str(directory / step.name))
    return build_event(step, start)


async def handle_scroll(ctx: PlaybackContext, step: ScrollStep) -> ActionEvent:
    start = now_ms()
    delta = {"x": step.x, "y": step.y}

    if not step.selector and step.target is None:
        await ctx.page.evaluate(
            "(d) => window.scrollBy({ left: d.x, top: d.y, behavior: 'smooth' })", delta
        )
        return build_event(step, start)

    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)
    await ensure_target_attached(resolved.locator, timeout_ms)
    await resolved.locator.scroll_into_view_if_needed(timeout=timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    await resolved.locator.evaluate(
        "(el, d) => el.scrollBy({ left: d.x, top: d.y, behavior: 'smooth' })", delta
    )
    return build_event(step, start, selector=resolved.descriptor, box=box)


# ---------------------------------------------------------------------------
# Element steps
# ---------------------------------------------------------------------------


async def handle_click(ctx: PlaybackContext, step: ClickStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    await ensure_target_ready(resolved.locator, timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    await click_feedback(ctx.page, box)
    await resolved.locator.click(timeout=timeout_ms)
    return build_event(step, start, selector=resolved.descriptor, box=box)


async def handle_type(ctx: PlaybackContext, step: TypeStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    await ensure_target_ready(resolved.locator, timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    if step.clear:
        await resolved.locator.fill("", timeout=timeout_ms)
    await resolved.locator.click(timeout=timeout_ms)
    await ctx.page.keyboard.type(step.text, delay=ctx.pacing.type_delay_ms)
    return build_event(step, start, selector=resolved.descriptor, box=box)


async def handle_hover(ctx: PlaybackContext, step: HoverStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    await ensure_target_ready(resolved.locator, timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    await resolved.locator.hover(timeout=timeout_ms)
    return build_event(step, start, selector=resolved.descriptor, box=box)


async def _set_checked(ctx: PlaybackContext, step: Step, checked: bool) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    await ensure_target_ready(resolved.locator, timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    await resolved.locator.set_checked(checked, timeout=timeout_ms)
    return build_event(step, start, selector=resolved.descriptor, box=box)


async def handle_check(ctx: PlaybackContext, step: CheckStep) -> ActionEvent:
    return await _set_checked(ctx, step, True)


async def handle_uncheck(ctx: PlaybackContext, step: UncheckStep) -> ActionEvent:
    return await _set_checked(ctx, step, False)


async def handle_select(ctx: PlaybackContext, step: SelectStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    await ensure_target_ready(resolved.locator, timeout_ms)
    box = await _present(ctx, resolved.locator, timeout_ms)
    await resolved.locator.select_option(step.option, timeout=timeout_ms)
    return build_event(step, start, selector=resolved.descriptor, box=box)


async def handle_upload(ctx: PlaybackContext, step: UploadStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    files = []
    for name in step.paths:
        path = Path(name)
        if not path.is_absolute() and ctx.spec_dir is not None:
            path = ctx.spec_dir / path
        files.append(str(path))

    await ensure_target_attached(resolved.locator, timeout_ms)
    await resolved.locator.set_input_files(files, timeout=timeout_ms)
    return build_event(step, start, selector=resolved.descriptor)


async def handle_drag_and_drop(ctx: PlaybackContext, step: DragAndDropStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    source = resolve_endpoint(ctx.page, step.from_, "from")
    dest = resolve_endpoint(ctx.page, step.to, "to")

    await ensure_target_ready(source.locator, timeout_ms)
    await ensure_target_ready(dest.locator, timeout_ms)
    box = await _present(ctx, source.locator, timeout_ms)
    await source.locator.drag_to(dest.locator, timeout=timeout_ms)
    return build_event(
        step, start, selector=f"{source.descriptor} -> {dest.descriptor}", box=box
    )


async def _wait_for_text(
    ctx: PlaybackContext, locator: Locator, expected: str, timeout_ms: float, descriptor: str
) -> None:
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        remaining_ms = (deadline - time.monotonic()) * 1000
        if remaining_ms <= 0:
            break
        # Playwright treats timeout=0 as "no timeout"
        try:
            content = await locator.text_content(timeout=max(1, remaining_ms))
        except PlaywrightTimeoutError:
            content = None
        if content is not None and expected in content:
            return
        await ctx.page.wait_for_timeout(ASSERT_POLL_INTERVAL_MS)
    raise StepAssertionError(expected, descriptor)


async def handle_assert(ctx: PlaybackContext, step: AssertStep) -> ActionEvent:
    start = now_ms()
    timeout_ms = step_timeout_ms(step)
    resolved = resolve_step_target(ctx.page, step)

    if step.visible is not None:
        state = "visible" if step.visible else "hidden"
        await resolved.locator.wait_for(state=state, timeout=timeout_ms)
    if step.text is not None:
        await _wait_for_text(ctx, resolved.locator, step.text, timeout_ms, resolved.descriptor)

    if step.visible is not False:
        box = await bounding_box(resolved.locator, timeout_ms)
        await flash_spotlight(ctx.page, box)
        await pulse_focus(ctx.page, box)
    return build_event(step, start, selector=resolved.descriptor)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

ACTION_HANDLERS: dict[StepAction, Handler] = {
    StepAction.NAVIGATE: handle_navigate,
    StepAction.CLICK: handle_click,
    StepAction.TYPE: handle_type,
    StepAction.HOVER: handle_hover,
    StepAction.SCROLL: handle_scroll,
    StepAction.WAIT: handle_wait,
    StepAction.ASSERT: handle_assert,
    StepAction.SCREENSHOT: handle_screenshot,
    StepAction.PRESS: handle_press,
    StepAction.BACK: handle_back,
    StepAction.FORWARD: handle_forward,
    StepAction.CHECK: handle_check,
    StepAction.UNCHECK: handle_uncheck,
    StepAction.SELECT: handle_select,
    StepAction.UPLOAD: handle_upload,
    StepAction.DRAG_AND_DROP: handle_drag_and_drop,
}

_missing = set(StepAction) - set(ACTION_HANDLERS)
if _missing:
    raise RuntimeError(f"No handler registered for: {sorted(a.value for a in _missing)}")


async def execute_step(ctx: PlaybackContext, step: Step) -> ActionEvent:
    """Run one step against the page and return its ActionEvent."""
    return await ACTION_HANDLERS[step.kind](ctx, step)

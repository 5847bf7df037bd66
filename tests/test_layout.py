from __future__ import annotations

import asyncio
import gc
import logging

from conftest import make_session
from rankbet_shell.auth_events import AuthEventBus, AuthEventKind
from rankbet_shell.layout import NO_HEADER_BUTTONS, AuthShell, LayoutController, LayoutPhase
from rankbet_shell.layout.html import render_root_layout


def page_with_buttons(label: str):
    def content(buttons) -> str:
        buttons.set_right_buttons(f"<button>{label}</button>")
        return f"<p>{label}</p>"
    return content


def test_initializing_renders_bare_content_even_when_signed_in():
    controller = LayoutController(path="/dashboard", session=make_session())
    rendered = controller.render(page_with_buttons("Save"))

    assert rendered.phase is LayoutPhase.INITIALIZING
    assert rendered.show_header is False
    assert rendered.content == "<p>Save</p>"
    # the setter handed out before mount is a no-op
    assert controller.right_buttons is None
    assert render_root_layout(rendered) == "<p>Save</p>"


def test_mount_enables_chrome_once():
    bus = AuthEventBus()
    controller = LayoutController(path="/dashboard", session=make_session(), events=bus)
    controller.mount()
    controller.mount()

    assert controller.phase is LayoutPhase.READY
    assert bus.listener_count == 1

    rendered = controller.render(page_with_buttons("Save"))
    assert rendered.show_header is True
    assert rendered.right_buttons == "<button>Save</button>"
    html = render_root_layout(rendered)
    assert html.startswith('<header class="nav-header">')
    assert '<div class="right-buttons"><button>Save</button></div>' in html


def test_navigation_clears_right_buttons_before_next_page():
    controller = LayoutController(path="/dashboard", session=make_session())
    controller.mount()
    controller.render(page_with_buttons("Save"))

    controller.navigate("/rankings")
    assert controller.right_buttons is None

    rendered = controller.render(lambda buttons: "<p>plain</p>")
    assert rendered.right_buttons is None


def test_same_path_navigation_keeps_buttons():
    controller = LayoutController(path="/dashboard", session=make_session())
    controller.mount()
    controller.render(page_with_buttons("Save"))
    controller.navigate("/dashboard")
    assert controller.right_buttons == "<button>Save</button>"


def test_header_buttons_are_noop_outside_chrome():
    controller = LayoutController(path="/demo", session=make_session())
    controller.mount()

    assert controller.header_buttons() is NO_HEADER_BUTTONS
    controller.header_buttons().set_right_buttons("<button>x</button>")
    assert controller.right_buttons is None
    assert controller.render(page_with_buttons("x")).show_header is False


def test_sign_out_event_hides_chrome():
    bus = AuthEventBus()
    controller = LayoutController(path="/profile", session=make_session(), events=bus)
    controller.mount()
    assert controller.show_header

    bus.publish(AuthEventKind.SIGNED_OUT, None)
    assert controller.session is None
    assert controller.show_header is False


def test_sign_in_schedules_one_badge_check():
    calls: list[str] = []

    async def check() -> None:
        calls.append("checked")

    async def scenario() -> None:
        bus = AuthEventBus()
        controller = LayoutController(
            path="/dashboard", session=None, events=bus, check_badges=check, badge_delay_s=0.01
        )
        controller.mount()
        bus.publish(AuthEventKind.SIGNED_IN, make_session())
        bus.publish(AuthEventKind.TOKEN_REFRESHED, make_session())
        assert controller.pending_badge_checks == 1
        assert controller.show_header

        await asyncio.sleep(0.05)
        assert controller.pending_badge_checks == 0
        controller.teardown()

    asyncio.run(scenario())
    assert calls == ["checked"]


def test_signed_in_without_session_does_not_check_badges():
    async def check() -> None:
        raise AssertionError("should not run")

    async def scenario() -> int:
        bus = AuthEventBus()
        controller = LayoutController(path="/", session=None, events=bus, check_badges=check)
        controller.mount()
        bus.publish(AuthEventKind.SIGNED_IN, None)
        return controller.pending_badge_checks

    assert asyncio.run(scenario()) == 0


def test_teardown_cancels_pending_badge_check_and_unsubscribes():
    calls: list[str] = []

    async def check() -> None:
        calls.append("checked")

    async def scenario() -> None:
        bus = AuthEventBus()
        controller = LayoutController(
            path="/dashboard", session=None, events=bus, check_badges=check, badge_delay_s=10
        )
        controller.mount()
        bus.publish(AuthEventKind.SIGNED_IN, make_session())
        assert controller.pending_badge_checks == 1

        controller.teardown()
        await asyncio.sleep(0)
        assert controller.pending_badge_checks == 0
        assert bus.listener_count == 0

        # events after teardown no longer reach the controller
        bus.publish(AuthEventKind.SIGNED_OUT, None)
        assert controller.session is not None

        controller.mount()
        assert bus.listener_count == 0

    asyncio.run(scenario())
    assert calls == []


def test_auth_shell_defers_decorative_panels():
    shell = AuthShell()
    before = shell.render("<form></form>")
    assert "placeholder" in before
    assert "Start Ranking Today" not in before
    assert "<form></form>" in before

    shell.mount()
    after = shell.render("<form></form>")
    assert "placeholder" not in after
    assert "Start Ranking Today" in after
    assert "Prove Your Skills" in after


def test_failed_badge_check_is_logged_not_left_on_the_task(caplog):
    reported: list[str] = []

    async def check() -> None:
        raise RuntimeError("badge service bug")

    async def scenario() -> None:
        asyncio.get_running_loop().set_exception_handler(
            lambda loop, context: reported.append(context["message"])
        )
        bus = AuthEventBus()
        controller = LayoutController(
            path="/dashboard", session=None, events=bus, check_badges=check, badge_delay_s=0
        )
        controller.mount()
        bus.publish(AuthEventKind.SIGNED_IN, make_session())
        await asyncio.sleep(0.05)
        assert controller.pending_badge_checks == 0
        controller.teardown()
        gc.collect()

    with caplog.at_level(logging.ERROR, logger="rankbet_shell.layout"):
        asyncio.run(scenario())

    assert reported == []
    (record,) = [r for r in caplog.records if r.getMessage() == "layout.badge_check_error"]
    assert record.event == "badge_check_error"
    assert record.path == "/dashboard"
    assert record.exc_info[0] is RuntimeError

import dataclasses

import pytest

from almost_fullscreen.fit.applier import ResizeApplier, ResizeState
from almost_fullscreen.fit.geometry import Padding, Rect
from almost_fullscreen.fit.policy import EASE_OUT_CUBIC, FitConfig, WorkaroundPolicy

from conftest import FakeActor, FakeWindow


def make_config(**policy):
    return FitConfig(
        padding=Padding.uniform(8), policy=dataclasses.replace(WorkaroundPolicy(), **policy)
    )


@pytest.fixture
def applier(host):
    return ResizeApplier(host, make_config())


class TestFit:
    def test_fits_fresh_window(self, applier, window, actor):
        state = applier.run(window)

        assert state is ResizeState.SETTLED
        assert window.calls == [
            ("maximize",),
            ("unmaximize",),
            ("move_resize_frame", 8, 8, 1904, 1064),
        ]
        assert actor.eases == [(Rect(8, 8, 1904, 1064), 400, EASE_OUT_CUBIC)]

    def test_already_fitted_window_is_left_alone(self, applier, actor):
        window = FakeWindow(frame=Rect(8, 8, 1904, 1064), actor=actor)

        assert applier.run(window) is ResizeState.SETTLED
        assert window.calls == []
        assert actor.eases == []

    def test_second_run_is_a_no_op(self, applier, window):
        applier.run(window)
        calls_after_first = list(window.calls)

        applier.run(window)

        assert window.calls == calls_after_first
        assert window.command_names().count("move_resize_frame") == 1

    def test_animation_target_is_shifted_by_decoration_offset(self, applier, actor):
        window = FakeWindow(
            frame=Rect(10, 10, 800, 600), buffer=Rect(8, 8, 804, 604), actor=actor
        )

        applier.run(window)

        assert actor.eases[0][0] == Rect(6, 6, 1904, 1064)
        assert window.calls[-1] == ("move_resize_frame", 8, 8, 1904, 1064)

    def test_decoration_offset_disabled(self, host, actor):
        applier = ResizeApplier(host, make_config(decoration_offset=False))
        window = FakeWindow(
            frame=Rect(10, 10, 800, 600), buffer=Rect(8, 8, 804, 604), actor=actor
        )

        applier.run(window)

        assert actor.eases[0][0] == Rect(8, 8, 1904, 1064)

    def test_pixel_shrink_fix_disabled(self, host, window):
        applier = ResizeApplier(host, make_config(pixel_shrink_fix=False))

        applier.run(window)

        assert window.command_names() == ["move_resize_frame"]

    def test_animation_disabled(self, host, window, actor):
        applier = ResizeApplier(host, make_config(animate=False))

        applier.run(window)

        assert actor.eases == []
        assert window.command_names()[-1] == "move_resize_frame"

    def test_failing_animation_does_not_block_resize(self, applier):
        class BrokenActor(FakeActor):
            def ease(self, target, duration_ms, mode):
                raise RuntimeError("actor gone")

        window = FakeWindow(actor=BrokenActor())

        assert applier.run(window) is ResizeState.SETTLED
        assert window.command_names()[-1] == "move_resize_frame"

    def test_uses_the_windows_monitor(self, actor):
        from conftest import FakeHost

        host = FakeHost(
            work_areas={0: Rect(0, 0, 1920, 1080), 1: Rect(1920, 30, 2560, 1410)}
        )
        window = FakeWindow(monitor=1, actor=actor)

        ResizeApplier(host, make_config()).run(window)

        assert window.calls[-1] == ("move_resize_frame", 1928, 38, 2544, 1394)


class TestNormalize:
    def test_maximized_window_is_unmaximized_first(self, applier, actor):
        window = FakeWindow(maximized=True, actor=actor)

        assert applier.run(window) is ResizeState.SETTLED
        assert window.command_names() == [
            "unmaximize",
            "maximize",
            "unmaximize",
            "move_resize_frame",
        ]

    def test_half_maximized_counts_as_maximized(self, applier, actor):
        window = FakeWindow(actor=actor)
        window.max_v = True

        applier.run(window)

        assert window.command_names()[0] == "unmaximize"

    def test_settle_delay_defers_the_fit(self, host, actor):
        applier = ResizeApplier(host, make_config(settle_delay_ms=200))
        window = FakeWindow(maximized=True, actor=actor)

        assert applier.run(window) is ResizeState.NORMALIZING
        assert window.command_names() == ["unmaximize"]
        assert host.timer_delays() == [200]

        host.run_timers()

        assert window.calls[-1] == ("move_resize_frame", 8, 8, 1904, 1064)
        assert applier.pending_timers == set()

    def test_settle_timer_skips_destroyed_window(self, host, actor):
        applier = ResizeApplier(host, make_config(settle_delay_ms=200))
        window = FakeWindow(maximized=True, actor=actor)
        applier.run(window)

        window.destroyed = True
        host.run_timers()

        assert window.command_names() == ["unmaximize"]

    def test_cancel_pending_removes_settle_timer(self, host, actor):
        applier = ResizeApplier(host, make_config(settle_delay_ms=200))
        applier.run(FakeWindow(maximized=True, actor=actor))

        applier.cancel_pending()

        assert host.timers == {}
        assert applier.pending_timers == set()


class TestSkips:
    def test_ineligible_window_is_untouched(self, applier, actor):
        window = FakeWindow(window_type="dialog", actor=actor)

        assert applier.run(window) is ResizeState.IDLE
        assert window.calls == []

    def test_none_window(self, applier):
        assert applier.run(None) is ResizeState.IDLE

    def test_host_error_is_logged_and_swallowed(self, applier, actor, caplog):
        window = FakeWindow(monitor=7, actor=actor)

        assert applier.run(window) is ResizeState.IDLE
        assert "resize failed" in caplog.text
        assert "move_resize_frame" not in window.command_names()

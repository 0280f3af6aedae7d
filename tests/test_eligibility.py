import pytest

from almost_fullscreen.fit.eligibility import is_eligible
from almost_fullscreen.fit.policy import FitConfig, WorkaroundPolicy

from conftest import FakeActor, FakeWindow


@pytest.fixture
def config():
    return FitConfig(ignore_windows=["Gimp", "org.gnome.Calculator"])


class TestIsEligible:
    def test_normal_window(self, config, window):
        assert is_eligible(window, config)

    def test_missing_window(self, config):
        assert not is_eligible(None, config)

    def test_destroyed_window(self, config, window):
        window.destroyed = True

        assert not is_eligible(window, config)

    @pytest.mark.parametrize("window_type", ["dialog", "modal-dialog", "utility"])
    def test_non_normal_types(self, config, window_type):
        window = FakeWindow(window_type=window_type, actor=FakeActor())

        assert not is_eligible(window, config)

    @pytest.mark.parametrize("wm_class", ["gimp", "GIMP", "Org.Gnome.Calculator"])
    def test_ignored_classes_match_case_insensitively(self, config, wm_class):
        window = FakeWindow(wm_class=wm_class, actor=FakeActor())

        assert not is_eligible(window, config)

    def test_ignore_list_is_exact_match(self, config):
        window = FakeWindow(wm_class="gimp-2.10", actor=FakeActor())

        assert is_eligible(window, config)

    def test_window_without_class(self, config):
        assert is_eligible(FakeWindow(wm_class=None, actor=FakeActor()), config)

    def test_missing_actor(self, config):
        assert not is_eligible(FakeWindow(actor=None), config)

    def test_actor_passed_by_caller(self, config):
        assert is_eligible(FakeWindow(actor=None), config, actor=FakeActor())

    def test_actor_not_required(self):
        config = FitConfig(policy=WorkaroundPolicy(require_actor=False))

        assert is_eligible(FakeWindow(actor=None), config)

    def test_fixed_size_window(self, config):
        assert not is_eligible(FakeWindow(resizable=False, actor=FakeActor()), config)

    def test_compositor_error_counts_as_rejection(self, config, caplog):
        class VanishingWindow(FakeWindow):
            def get_wm_class(self):
                raise LookupError("view 42 no longer exists")

        assert not is_eligible(VanishingWindow(actor=FakeActor()), config)
        assert "eligibility check failed" in caplog.text


def test_ignore_list_is_normalized_once():
    config = FitConfig(ignore_windows=["Firefox", "firefox", "KITTY"])

    assert config.ignore_windows == frozenset({"firefox", "kitty"})
    assert config.is_ignored("Kitty")
    assert not config.is_ignored("")

"""
Tests for the media controller sink
====================================
"""

import pytest
from unittest.mock import patch

from gesture_control.control.media_controller import MediaController, MediaState
from gesture_control.core.pipeline import Pipeline
from gesture_control.core.types import AdjustVolume, Frame, PauseAndHide, Play, SeekBy
from gesture_control.recognition.gesture_tracker import GestureTracker

from hand_factory import make_hand


@pytest.fixture
def no_backends():
    with patch.object(MediaController, "_check_xdotool", return_value=False), \
            patch.object(MediaController, "_check_dbus", return_value=False):
        yield


@pytest.fixture
def controller(no_backends):
    return MediaController({"backend": "simulated"})


class TestMediaState:

    def test_play_then_pause_and_hide(self, controller):
        state = controller.apply(Play())
        assert state.playing and state.visible

        state = controller.apply(PauseAndHide())
        assert not state.playing
        assert not state.visible

    def test_play_shows_surface(self, controller):
        controller.apply(PauseAndHide())
        assert controller.apply(Play()).visible

    def test_seek(self, controller):
        controller.apply(SeekBy(seconds=5))
        controller.apply(SeekBy(seconds=5))
        assert controller.state.position == 10
        controller.apply(SeekBy(seconds=-30))
        assert controller.state.position == 0

    def test_volume_is_clamped(self, controller):
        assert controller.state.volume == 1.0
        controller.apply(AdjustVolume(delta=0.5))
        assert controller.state.volume == 1.0
        controller.apply(AdjustVolume(delta=-0.5))
        controller.apply(AdjustVolume(delta=-0.5))
        controller.apply(AdjustVolume(delta=-0.5))
        assert controller.state.volume == 0.0

    def test_initial_volume(self, no_backends):
        controller = MediaController({"initial_volume": 0.25})
        controller.apply(AdjustVolume(delta=0.5))
        assert controller.state.volume == 0.75

    def test_unknown_effect(self, controller):
        with pytest.raises(ValueError):
            controller.apply(object())

    def test_callable_as_sink(self, controller):
        controller(SeekBy(seconds=5))
        assert controller.state.position == 5


class TestBookkeeping:

    def test_last_effect(self, controller):
        assert controller.last_effect_label == "none"
        controller.apply(SeekBy(seconds=-5))
        assert controller.last_effect == SeekBy(seconds=-5)
        assert controller.last_effect_label == "seek_by(-5)"
        assert controller.effect_count == 1
        assert controller.last_effect_time > 0

    def test_callbacks(self, controller):
        seen = []
        controller.on_effect(lambda effect, state: seen.append((effect, state.volume)))
        controller.apply(AdjustVolume(delta=-0.5))
        assert seen == [(AdjustVolume(delta=-0.5), 0.5)]

    def test_callback_errors_are_contained(self, controller):
        def broken(effect, state):
            raise RuntimeError("boom")

        controller.on_effect(broken)
        assert controller.apply(Play()) == MediaState(playing=True)


class TestBackendSelection:

    def test_unknown_backend(self, no_backends):
        assert MediaController({"backend": "midi"}).backend == "simulated"

    def test_dbus_falls_back_to_simulated(self, no_backends):
        assert MediaController({"backend": "dbus"}).backend == "simulated"

    def test_dbus_falls_back_to_xdotool(self):
        with patch.object(MediaController, "_check_xdotool", return_value=True), \
                patch.object(MediaController, "_check_dbus", return_value=False):
            assert MediaController({"backend": "dbus"}).backend == "xdotool"


class TestXdotool:

    @pytest.fixture
    def controller(self):
        with patch.object(MediaController, "_check_xdotool", return_value=True), \
                patch.object(MediaController, "_check_dbus", return_value=False):
            yield MediaController({"backend": "xdotool", "async_exec": False, "window_name": "mpv"})

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_seek_sends_key(self, mock_run, controller):
        controller.apply(SeekBy(seconds=5))
        args = mock_run.call_args[0][0]
        assert args[:4] == ["xdotool", "search", "--name", "mpv"]
        assert args[-1] == "Right"

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_pause_and_hide_minimizes(self, mock_run, controller):
        controller.apply(Play())
        mock_run.reset_mock()
        controller.apply(PauseAndHide())
        commands = [call[0][0] for call in mock_run.call_args_list]
        assert commands[0][-1] == "space"
        assert commands[1][-1] == "windowminimize"

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_repeated_play_sends_once(self, mock_run, controller):
        controller.apply(Play())
        controller.apply(Play())
        assert mock_run.call_count == 1

    @patch("gesture_control.control.media_controller.subprocess.run", side_effect=OSError("no display"))
    def test_command_failure_keeps_state(self, mock_run, controller):
        state = controller.apply(AdjustVolume(delta=-0.5))
        assert state.volume == 0.5

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_first_pause_sends_key(self, mock_run, controller):
        assert controller.state.playing is None
        controller.apply(PauseAndHide())
        commands = [call[0][0] for call in mock_run.call_args_list]
        assert [c[-1] for c in commands] == ["space", "windowminimize"]

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_known_pause_does_not_toggle(self, mock_run, controller):
        controller.apply(PauseAndHide())
        mock_run.reset_mock()
        controller.apply(PauseAndHide())
        commands = [call[0][0] for call in mock_run.call_args_list]
        assert [c[-1] for c in commands] == ["windowminimize"]

    @patch("gesture_control.control.media_controller.subprocess.run")
    def test_held_fist_pauses_without_autoplay(self, mock_run, controller):
        pipeline = Pipeline(GestureTracker(), sinks=[controller.apply])
        pipeline.start()
        for _ in range(5):
            pipeline.tick(Frame(hands=(make_hand("fist"),)))

        keys = [call[0][0][-1] for call in mock_run.call_args_list]
        assert keys == ["space", "windowminimize"]
        assert controller.state.playing is False


class TestDbus:

    @pytest.fixture
    def controller(self):
        with patch.object(MediaController, "_check_xdotool", return_value=True), \
                patch.object(MediaController, "_check_dbus", return_value=True):
            yield MediaController({"backend": "dbus", "async_exec": False})

    def test_pause_is_always_sent(self, controller):
        with patch.object(controller, "_send_dbus") as send, \
                patch.object(controller, "_hide_window"):
            controller.apply(PauseAndHide())
            controller.apply(PauseAndHide())
        assert [c[0][0] for c in send.call_args_list] == ["pause", "pause"]

    def test_play_after_pause(self, controller):
        with patch.object(controller, "_send_dbus") as send, \
                patch.object(controller, "_hide_window"):
            controller.apply(PauseAndHide())
            controller.apply(Play())
            controller.apply(Play())
        assert [c[0][0] for c in send.call_args_list] == ["pause", "play"]

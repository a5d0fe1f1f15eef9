"""
Media controller: the sink that executes control effects.

Keeps a local MediaState (playing, visible, position, volume) and forwards
each effect to a real player through one of:

    simulated - state only, commands are logged
    xdotool   - key presses / window minimize on the player window (X11)
    dbus      - MPRIS2 Play, Pause, Seek and Volume

Volume is clamped into the effect's range here, not in the tracker.
"""

import time
import subprocess
import threading
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from gesture_control.core.types import (
    AdjustVolume, ControlEffect, EffectKind, SeekBy, describe_effect,
)

logger = logging.getLogger(__name__)

BACKENDS = ("simulated", "xdotool", "dbus")

_MPRIS_SERVICE = "org.mpris.MediaPlayer2.%s"
_MPRIS_PATH = "/org/mpris/MediaPlayer2"
_MPRIS_PLAYER = "org.mpris.MediaPlayer2.Player"


@dataclass
class MediaState:
    """What the controller believes the player is doing.

    ``playing`` is None until an effect sets it: the player may already be
    running when the session starts.
    """
    playing: Optional[bool] = None
    visible: bool = True
    position: float = 0.0
    volume: float = 1.0


class MediaController:
    """Executes ControlEffects against a media player.

    Usable directly as a pipeline sink: ``pipeline.add_sink(controller.apply)``.
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._player = config.get("player", "vlc")
        self._window_name = config.get("window_name", "VLC")
        self._backend = config.get("backend", "simulated")
        self._async_exec = config.get("async_exec", True)
        self._keybindings = config.get("keybindings", {
            "play": "space",
            "pause": "space",
            "seek_forward": "Right",
            "seek_backward": "Left",
            "volume_up": "Up",
            "volume_down": "Down",
        })
        self._command_timeout = config.get("command_timeout_s", 1.0)

        self._state = MediaState(volume=float(config.get("initial_volume", 1.0)))
        self._effect_callbacks: List[Callable[[ControlEffect, MediaState], None]] = []
        self._last_effect: Optional[ControlEffect] = None
        self._last_effect_time = 0.0
        self._effect_count = 0

        self._handlers = {
            EffectKind.PLAY: self._play,
            EffectKind.PAUSE_AND_HIDE: self._pause_and_hide,
            EffectKind.SEEK_BY: self._seek_by,
            EffectKind.ADJUST_VOLUME: self._adjust_volume,
        }

        if self._backend not in BACKENDS:
            logger.warning("Unknown media backend '%s', using simulated", self._backend)
            self._backend = "simulated"

        self._xdotool_available = self._check_xdotool()
        self._dbus_available = self._check_dbus()

        if self._backend == "dbus" and not self._dbus_available:
            logger.warning("D-Bus not available, falling back to xdotool")
            self._backend = "xdotool"

        if self._backend == "xdotool" and not self._xdotool_available:
            logger.warning("xdotool not found - effects will be simulated (logged only)")
            self._backend = "simulated"

        logger.info("MediaController initialized (backend=%s, player=%s)",
                    self._backend, self._player)

    @staticmethod
    def _check_xdotool() -> bool:
        """Check if xdotool is available."""
        try:
            result = subprocess.run(
                ["which", "xdotool"],
                stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                timeout=2,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    @staticmethod
    def _check_dbus() -> bool:
        """Check if D-Bus python bindings are installed."""
        try:
            import dbus  # noqa: F401
            return True
        except ImportError:
            return False

    # =========================================================================
    # Effect dispatch
    # =========================================================================

    def apply(self, effect: ControlEffect) -> MediaState:
        """Apply an effect to local state and forward it to the player.

        Returns:
            The updated MediaState
        """
        handler = self._handlers.get(getattr(effect, "kind", None))
        if handler is None:
            raise ValueError("Unsupported control effect: %r" % (effect,))

        commands = handler(effect)
        self._run_commands(commands)
        self._record_effect(effect)
        return self._state

    def __call__(self, effect: ControlEffect) -> MediaState:
        return self.apply(effect)

    def _play(self, effect) -> List[Callable[[], None]]:
        was_playing = self._state.playing
        self._state.playing = True
        self._state.visible = True
        if was_playing is True:
            return []
        return [lambda: self._send("play")]

    def _pause_and_hide(self, effect) -> List[Callable[[], None]]:
        was_playing = self._state.playing
        self._state.playing = False
        self._state.visible = False
        commands = []
        # MPRIS Pause is idempotent; a toggle key must not fire on a known pause
        if was_playing is not False or self._backend == "dbus":
            commands.append(lambda: self._send("pause"))
        commands.append(self._hide_window)
        return commands

    def _seek_by(self, effect: SeekBy) -> List[Callable[[], None]]:
        self._state.position = max(0.0, self._state.position + effect.seconds)
        action = "seek_forward" if effect.seconds > 0 else "seek_backward"
        return [lambda: self._send(action, seconds=effect.seconds)]

    def _adjust_volume(self, effect: AdjustVolume) -> List[Callable[[], None]]:
        self._state.volume = effect.apply(self._state.volume)
        action = "volume_up" if effect.delta > 0 else "volume_down"
        target = self._state.volume
        return [lambda: self._send(action, volume=target)]

    def _run_commands(self, commands: List[Callable[[], None]]):
        if not commands:
            return
        if self._async_exec and self._backend != "simulated":
            thread = threading.Thread(
                target=self._run_all, args=(commands,), daemon=True
            )
            thread.start()
        else:
            self._run_all(commands)

    @staticmethod
    def _run_all(commands: List[Callable[[], None]]):
        for command in commands:
            command()

    def _record_effect(self, effect: ControlEffect):
        """Record effect metadata and notify callbacks."""
        self._last_effect = effect
        self._last_effect_time = time.monotonic()
        self._effect_count += 1

        for callback in self._effect_callbacks:
            try:
                callback(effect, self._state)
            except Exception as e:
                logger.error("Effect callback error: %s", e)

    # =========================================================================
    # Backends
    # =========================================================================

    def _send(self, action: str, seconds: float = 0.0, volume: Optional[float] = None):
        if self._backend == "dbus":
            self._send_dbus(action, seconds=seconds, volume=volume)
        elif self._backend == "xdotool":
            self._send_key(action)
        else:
            logger.info("[SIMULATED] %s (seconds=%g, volume=%s)", action, seconds,
                        "n/a" if volume is None else "%.2f" % volume)

    def _send_key(self, action: str):
        """Send the bound key to the player window via xdotool."""
        key = self._keybindings.get(action)
        if key is None:
            logger.debug("No keybinding for action: %s", action)
            return
        try:
            subprocess.run(
                ["xdotool", "search", "--name", self._window_name,
                 "key", "--window", "%@", key],
                stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                timeout=self._command_timeout,
            )
            logger.debug("Sent key '%s' for action '%s'", key, action)
        except subprocess.TimeoutExpired:
            logger.warning("xdotool timed out for action: %s", action)
        except OSError as e:
            logger.error("Failed to send key: %s", e)

    def _hide_window(self):
        """Minimize the player window (the 'hide' half of pause_and_hide)."""
        if not self._xdotool_available or self._backend == "simulated":
            logger.info("[SIMULATED] hide window '%s'", self._window_name)
            return
        try:
            subprocess.run(
                ["xdotool", "search", "--name", self._window_name, "windowminimize"],
                stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                timeout=self._command_timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("xdotool timed out hiding window")
        except OSError as e:
            logger.error("Failed to hide window: %s", e)

    def _send_dbus(self, action: str, seconds: float = 0.0, volume: Optional[float] = None):
        """Send an action to the player via the D-Bus MPRIS2 interface."""
        try:
            import dbus
            bus = dbus.SessionBus()
            player = bus.get_object(_MPRIS_SERVICE % self._player, _MPRIS_PATH)
            iface = dbus.Interface(player, _MPRIS_PLAYER)
            props = dbus.Interface(player, "org.freedesktop.DBus.Properties")

            if action == "play":
                iface.Play()
            elif action == "pause":
                iface.Pause()
            elif action in ("seek_forward", "seek_backward"):
                iface.Seek(dbus.Int64(int(seconds * 1_000_000)))
            elif action in ("volume_up", "volume_down"):
                props.Set(_MPRIS_PLAYER, "Volume", dbus.Double(volume))
            else:
                logger.warning("No D-Bus mapping for action: %s", action)
                return
            logger.debug("D-Bus action executed: %s", action)

        except Exception as e:
            logger.warning("D-Bus action failed for '%s': %s. Falling back to xdotool.", action, e)
            if self._xdotool_available:
                self._send_key(action)

    # =========================================================================
    # Callbacks and state
    # =========================================================================

    def on_effect(self, callback: Callable[[ControlEffect, MediaState], None]):
        """Register callback(effect, state) run after each applied effect."""
        self._effect_callbacks.append(callback)

    @property
    def state(self) -> MediaState:
        return self._state

    @property
    def last_effect(self) -> Optional[ControlEffect]:
        return self._last_effect

    @property
    def last_effect_label(self) -> str:
        if self._last_effect is None:
            return "none"
        return describe_effect(self._last_effect)

    @property
    def last_effect_time(self) -> float:
        return self._last_effect_time

    @property
    def effect_count(self) -> int:
        return self._effect_count

    @property
    def backend(self) -> str:
        return self._backend

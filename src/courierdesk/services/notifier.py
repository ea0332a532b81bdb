"""Best-effort audible cue for newly arrived orders.

Callers invoke ``notify()`` and never inspect the outcome: a missing player,
a missing sound file or a denied audio device must not disturb the poll
cycle, so every failure ends here.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

from courierdesk.core.errors import NotificationPlaybackFailure
from courierdesk.core.metrics import METRICS
from courierdesk.settings import AppSettings, get_settings

log = logging.getLogger("courierdesk.notifier")

# Probed in order; each plays a file at full volume and exits.
PLAYER_CANDIDATES: tuple[tuple[str, ...], ...] = (
    ("paplay", "--volume=65536"),
    ("afplay", "-v", "1"),
    ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", "-volume", "100"),
    ("aplay", "-q"),
)


class Notifier(Protocol):
    def notify(self) -> None: ...


class NullNotifier:
    def notify(self) -> None:
        METRICS.increment_counter("alerts_total")


class BellNotifier:
    """Ring a callback such as the terminal bell."""

    def __init__(self, bell: Callable[[], Any]) -> None:
        self._bell = bell

    def notify(self) -> None:
        METRICS.increment_counter("alerts_total")
        try:
            self._bell()
        except Exception as exc:  # noqa: BLE001 - playback is best effort
            log.debug("Bell failed: %s", exc)


class SoundNotifier:
    """Play ``sound_path`` through an external player, one process per cue."""

    def __init__(
        self,
        sound_path: Path,
        player: Sequence[str],
        *,
        spawn: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self.sound_path = sound_path
        self.player = tuple(player)
        self._spawn = spawn

    def play(self) -> None:
        if not self.sound_path.is_file():
            raise NotificationPlaybackFailure(f"sound file not found: {self.sound_path}")
        command = [*self.player, str(self.sound_path)]
        try:
            self._spawn(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, ValueError) as exc:
            raise NotificationPlaybackFailure(str(exc)) from exc

    def notify(self) -> None:
        METRICS.increment_counter("alerts_total")
        try:
            self.play()
        except NotificationPlaybackFailure as exc:
            log.debug("Notification playback skipped: %s", exc)


def resolve_player(configured: str | None) -> tuple[str, ...] | None:
    """Return the player command from settings, or the first one on PATH."""

    if configured:
        return tuple(shlex.split(configured))
    for candidate in PLAYER_CANDIDATES:
        if shutil.which(candidate[0]):
            return candidate
    return None


def build_notifier(
    settings: AppSettings | None = None,
    *,
    bell: Callable[[], Any] | None = None,
) -> Notifier:
    """Pick the richest notifier the host supports."""

    settings = settings or get_settings()
    if not settings.notify_enabled:
        return NullNotifier()
    sound_path = Path(settings.notify_sound_path)
    player = resolve_player(settings.notify_player)
    if player is not None and sound_path.is_file():
        return SoundNotifier(sound_path, player)
    if bell is not None:
        return BellNotifier(bell)
    log.info("No audio player or sound file available; alerts are silent")
    return NullNotifier()

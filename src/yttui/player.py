from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Protocol

from .models import VideoEntry

logger = logging.getLogger(__name__)

Launcher = Callable[[str], None]
Popen = Callable[..., object]

FALLBACK_PLAYERS = ("mpv", "vlc")
YTDL_FORMAT = "best[height<=?1080]/bestvideo[height<=?1080]+bestaudio/best"


class LaunchError(RuntimeError):
    pass


class WatchRecorder(Protocol):
    def mark_watched(self, video_id: str) -> str | None: ...


@dataclass(frozen=True)
class PlaybackResult:
    launched: bool
    message: str


class PlaybackCoordinator:
    """Starts the external player and records the watch once it was issued.

    The player runs detached; nothing here waits for it to exit. A video is
    marked watched only when the launch request itself succeeded.
    """

    def __init__(self, history: WatchRecorder, launcher: Launcher | None = None) -> None:
        self._history = history
        self._launcher = launcher or PlayerLauncher()

    def play(self, entry: VideoEntry) -> PlaybackResult:
        url = entry.url
        try:
            self._launcher(url)
        except LaunchError as exc:
            logger.warning("Launch failed for %s: %s", entry.video_id, exc)
            return PlaybackResult(launched=False, message=f"Failed to open video: {exc}")
        logger.info("Launched player for %s", entry.video_id)
        error = self._history.mark_watched(entry.video_id)
        if error:
            return PlaybackResult(launched=True, message=f"Failed to save history: {error}")
        return PlaybackResult(launched=True, message=f"Opened: {entry.title}")


class PlayerLauncher:
    def __init__(
        self,
        player: str | None = None,
        popen: Popen | None = None,
        which: Callable[[str], str | None] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._player = player
        self._popen = popen or subprocess.Popen
        self._which = which or shutil.which
        self._environ = environ if environ is not None else os.environ
        self._resolved: list[str] | None = None

    def __call__(self, url: str) -> None:
        command = build_player_command(
            self.resolve_player(),
            url,
            wayland=is_wayland(self._environ),
        )
        try:
            self._popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise LaunchError(f"{command[0]}: {exc}") from exc

    def resolve_player(self) -> list[str]:
        if self._resolved is not None:
            return self._resolved
        if self._player:
            parts = shlex.split(self._player)
            if not parts:
                raise LaunchError("Player command is empty")
            found = self._which(parts[0])
            if found is None:
                raise LaunchError(f"Missing command: {parts[0]}")
            self._resolved = [found, *parts[1:]]
            return self._resolved
        for name in FALLBACK_PLAYERS:
            found = self._which(name)
            if found:
                self._resolved = [found]
                return self._resolved
        raise LaunchError("Missing command: mpv or vlc. Make sure mpv and yt-dlp are installed.")


def build_player_command(player: list[str], url: str, *, wayland: bool) -> list[str]:
    command = list(player)
    if Path(command[0]).stem.lower() != "mpv" or len(command) > 1:
        return [*command, url]
    audio_output = "pipewire,pulse,auto" if wayland else "pulse,alsa,auto"
    return [
        *command,
        "--player-operation-mode=pseudo-gui",
        f"--ytdl-format={YTDL_FORMAT}",
        f"--ao={audio_output}",
        url,
    ]


def is_wayland(environ: Mapping[str, str]) -> bool:
    return environ.get("XDG_SESSION_TYPE") == "wayland" or "WAYLAND_DISPLAY" in environ

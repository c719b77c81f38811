"""Desktop notification sink (freedesktop notify-send / macOS osascript)."""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Final

from batmond.common.enums import Severity
from batmond.errors import SinkError

logger: Final = logging.getLogger(__name__)

APP_NAME: Final = "Battery Monitor"
TITLE: Final = "Battery"


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotificationSink:
    """Pushes alerts to the desktop notification daemon.

    On Linux and the BSDs this shells out to ``notify-send`` with the
    urgency matching the alert severity; on macOS it uses ``osascript``.
    A missing backend or a failing command raises :class:`SinkError`,
    which the monitor reports and then moves on to the next sink.
    """

    def __init__(
        self,
        icon: Path | None = None,
        app_name: str = APP_NAME,
        title: str = TITLE,
        system: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        """Initialize the sink.

        Args:
            icon: Icon shown next to the notification (skipped if missing)
            app_name: Application name reported to the notification daemon
            title: Notification summary line
            system: Override for ``platform.system()``
            timeout: Seconds to wait for the notification command
        """
        self.icon = icon
        self.app_name = app_name
        self.title = title
        self.system = system or platform.system()
        self.timeout = timeout

    def print(self, message: str) -> None:
        self._push(message, Severity.NORMAL)

    def critical(self, message: str) -> None:
        self._push(message, Severity.CRITICAL)

    def build_command(self, message: str, severity: Severity) -> list[str] | None:
        """Return the command that shows *message*, or None without a backend."""
        if self.system == "Darwin":
            osascript = shutil.which("osascript")
            if osascript is None:
                return None
            script = (
                f"display notification {_applescript_quote(message)} "
                f"with title {_applescript_quote(self.title)} "
                f"subtitle {_applescript_quote(self.app_name)}"
            )
            if severity is Severity.CRITICAL:
                script += ' sound name "Basso"'
            return [osascript, "-e", script]

        notify_send = shutil.which("notify-send")
        if notify_send is None:
            return None
        cmd = [notify_send, "-a", self.app_name, "-u", severity.value]
        if self.icon is not None and self.icon.exists():
            cmd += ["-i", str(self.icon)]
        cmd += [self.title, message]
        return cmd

    def _push(self, message: str, severity: Severity) -> None:
        cmd = self.build_command(message, severity)
        if cmd is None:
            raise SinkError("desktop", f"no notification backend available on {self.system}")

        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            raise SinkError("desktop", f"notification command failed: {exc.stderr or exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise SinkError("desktop", "notification command timed out") from exc
        except FileNotFoundError as exc:
            raise SinkError("desktop", f"notification command not found: {exc}") from exc

        logger.debug("Desktop notification sent (%s)", severity.value)

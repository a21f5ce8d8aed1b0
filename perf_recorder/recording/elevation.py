"""Privilege elevation helpers for running perf as root.

perf needs root to attach to arbitrary processes and kernel events. We never
elevate ourselves; instead an existing graphical sudo front-end is located on
PATH and the perf command line is prefixed with it.
"""

import grp
import logging
import os
import pwd
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

LOGGER = logging.getLogger(__name__)

# Preference order. kdesu can attach its dialog to our window.
KNOWN_HELPERS = ("kdesu", "gksu")

PRIVILEGED_USER = "root"

HelperResolver = Callable[[], Optional[str]]
ActiveWindowQuery = Callable[[], Optional[int]]


def resolve_elevation_helper(
    candidates: Sequence[str] = KNOWN_HELPERS,
) -> Optional[str]:
    """Find the first available elevation helper on PATH.

    Args:
        candidates: Helper executable names, in order of preference

    Returns:
        Absolute path of the helper, or None if none is installed
    """
    for name in candidates:
        path = shutil.which(name)
        if path:
            return path
    return None


def supports_attached_dialog(helper: str) -> bool:
    """Check whether the helper understands kdesu's -t/--attach flags."""
    return os.path.basename(helper) == "kdesu"


def query_active_window() -> Optional[int]:
    """Return the X11 id of the currently active window, if any.

    Only used to make the password dialog transient for our terminal, so any
    failure just yields None.
    """
    try:
        result = subprocess.run(
            ["xdotool", "getactivewindow"],
            capture_output=True,
            text=True,
            timeout=1,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, subprocess.SubprocessError):
        return None

    if result.returncode != 0:
        return None
    try:
        return int(result.stdout.strip())
    except ValueError:
        return None


def build_elevation_prefix(
    helper: str, active_window: ActiveWindowQuery = query_active_window
) -> List[str]:
    """Build the helper arguments that run the remaining command as root.

    Args:
        helper: Path to the elevation helper
        active_window: Callable returning the window the dialog should attach to

    Returns:
        Arguments to place between the helper binary and "--"
    """
    options = ["-u", PRIVILEGED_USER]
    if supports_attached_dialog(helper):
        # enable command line output
        options.append("-t")
        window_id = active_window()
        if window_id is not None:
            options.extend(["--attach", str(window_id)])
    return options


def current_username() -> Optional[str]:
    """Login name of the invoking (real) user."""
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        LOGGER.warning(f"No passwd entry for uid {os.getuid()}")
        return None


def current_group_name() -> Optional[str]:
    """Name of the invoking user's primary group."""
    try:
        return grp.getgrgid(os.getgid()).gr_name
    except KeyError:
        LOGGER.warning(f"No group entry for gid {os.getgid()}")
        return None


@dataclass(frozen=True)
class ElevationContext:
    """Everything needed to run commands as root on behalf of the user."""

    helper: Optional[str]
    username: Optional[str]
    group: Optional[str]

    @property
    def usable(self) -> bool:
        return bool(self.helper and self.username)

    @property
    def owner_spec(self) -> str:
        """chown-style "user:group" for handing files back to the user."""
        if self.group:
            return f"{self.username}:{self.group}"
        return f"{self.username}:"

    @classmethod
    def resolve(
        cls,
        resolver: HelperResolver = resolve_elevation_helper,
        username_provider: Callable[[], Optional[str]] = current_username,
        group_provider: Callable[[], Optional[str]] = current_group_name,
    ) -> "ElevationContext":
        """Resolve the helper and the invoking user's identity."""
        return cls(
            helper=resolver(),
            username=username_provider(),
            group=group_provider(),
        )

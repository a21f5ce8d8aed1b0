"""Handing a root-owned perf.data file back to the invoking user."""

import logging
import os
import subprocess
from typing import Callable, Optional

from .elevation import (
    ActiveWindowQuery,
    ElevationContext,
    HelperResolver,
    build_elevation_prefix,
    current_group_name,
    current_username,
    query_active_window,
    resolve_elevation_helper,
)

LOGGER = logging.getLogger(__name__)


def is_readable(path: str) -> bool:
    return os.access(path, os.R_OK)


def ensure_readable(
    path: str,
    resolver: HelperResolver = resolve_elevation_helper,
    username_provider: Callable[[], Optional[str]] = current_username,
    group_provider: Callable[[], Optional[str]] = current_group_name,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    active_window: ActiveWindowQuery = query_active_window,
) -> bool:
    """Make sure the invoking user can read the artifact.

    An elevated perf writes its output as root. When the file is not readable
    we chown it back through the elevation helper. This blocks until chown
    has finished.

    Args:
        path: Artifact path
        resolver: Callable locating the elevation helper
        username_provider: Callable returning the invoking user's login
        group_provider: Callable returning the user's primary group
        runner: Function used to run the chown command
        active_window: Callable returning the window id for kdesu

    Returns:
        True if the file is readable afterwards
    """
    if is_readable(path):
        return True

    context = ElevationContext.resolve(resolver, username_provider, group_provider)
    if not context.usable:
        LOGGER.warning(
            f"Cannot repair ownership of {path}: "
            f"helper={context.helper!r}, username={context.username!r}"
        )
        return False

    command = [context.helper, *build_elevation_prefix(context.helper, active_window)]
    command += ["--", "chown", context.owner_spec, path]

    LOGGER.info(f"Changing owner of {path} to {context.owner_spec}")
    try:
        result = runner(command, capture_output=True)
    except OSError as e:
        LOGGER.error(f"Failed to run {context.helper}: {e}", exc_info=True)
        return False

    if result.returncode != 0:
        LOGGER.warning(f"chown via {context.helper} exited with {result.returncode}")

    return is_readable(path)

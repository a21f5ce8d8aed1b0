"""Deciding whether a finished perf process produced a usable capture."""

import logging
import os
import signal
from dataclasses import dataclass
from typing import Optional

LOGGER = logging.getLogger(__name__)

TERMINATION_SIGNAL = signal.SIGTERM


def normalize_exit_code(returncode: Optional[int]) -> int:
    """Map an asyncio return code to the exit code perf reports.

    asyncio reports death by signal N as -N; we use the signal number itself
    so a terminated process reads as exit code 15.
    """
    if returncode is None:
        return -1
    if returncode < 0:
        return -returncode
    return returncode


def is_successful_capture(
    exit_code: int,
    artifact_exists: bool,
    artifact_size: int,
    user_terminated: bool,
) -> bool:
    """Apply the success rule.

    A non-empty artifact counts as a success whatever the exit code was:
    perf often leaves a usable, if truncated, file behind when it dies. This
    is a lenient heuristic; a crashed perf that only wrote a header also
    passes.
    """
    if not artifact_exists:
        return False
    return (
        exit_code == 0
        or (exit_code == TERMINATION_SIGNAL and user_terminated)
        or artifact_size > 0
    )


def failure_reason(exit_code: int) -> str:
    return f"Failed to record perf data, error code {exit_code}."


@dataclass(frozen=True)
class CaptureOutcome:
    """Result of classifying a finished recording."""

    success: bool
    exit_code: int
    artifact_path: str
    artifact_size: int = 0
    reason: Optional[str] = None


def classify_outcome(
    exit_code: int, artifact_path: str, user_terminated: bool
) -> CaptureOutcome:
    """Classify a finished recording by looking at its artifact.

    Args:
        exit_code: Normalized exit code (see normalize_exit_code)
        artifact_path: Path passed to perf's -o
        user_terminated: Whether the user asked for the recording to stop

    Returns:
        CaptureOutcome with the failure reason set when unsuccessful
    """
    try:
        artifact_size = os.stat(artifact_path).st_size
        artifact_exists = True
    except OSError as e:
        LOGGER.debug(f"Cannot stat {artifact_path}: {e}")
        artifact_size = 0
        artifact_exists = False

    success = is_successful_capture(
        exit_code, artifact_exists, artifact_size, user_terminated
    )
    return CaptureOutcome(
        success=success,
        exit_code=exit_code,
        artifact_path=artifact_path,
        artifact_size=artifact_size,
        reason=None if success else failure_reason(exit_code),
    )

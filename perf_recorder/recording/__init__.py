"""Recording perf data: command composition, process control and outcome."""

from .composer import CommandComposer, ComposedCommand, RecordRequest
from .controller import PerfRecordController, RecordingSession
from .elevation import (
    ElevationContext,
    build_elevation_prefix,
    resolve_elevation_helper,
)
from .errors import ElevationError, RecordingError, RecordingValidationError
from .events import EventType, Failed, Finished, Output, RecordingEvent, Started
from .outcome import CaptureOutcome, classify_outcome, is_successful_capture
from .permissions import ensure_readable

__all__ = [
    # Commands
    "CommandComposer",
    "ComposedCommand",
    "RecordRequest",
    # Process control
    "PerfRecordController",
    "RecordingSession",
    # Elevation
    "ElevationContext",
    "build_elevation_prefix",
    "resolve_elevation_helper",
    "ensure_readable",
    # Outcome
    "CaptureOutcome",
    "classify_outcome",
    "is_successful_capture",
    # Events
    "EventType",
    "Started",
    "Output",
    "Finished",
    "Failed",
    "RecordingEvent",
    # Errors
    "RecordingError",
    "RecordingValidationError",
    "ElevationError",
]

"""Events delivered by the recording controller to its caller."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Union


class EventType(Enum):
    """Types of recording events."""

    STARTED = "started"  # perf was asked to launch
    OUTPUT = "output"  # merged stdout/stderr chunk
    FINISHED = "finished"  # terminal success
    FAILED = "failed"  # terminal failure or rejected request

    @property
    def is_terminal(self) -> bool:
        return self in (EventType.FINISHED, EventType.FAILED)


@dataclass
class Started:
    """The composed command was handed to the OS."""

    binary: str
    arguments: List[str]
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: EventType = field(default=EventType.STARTED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "binary": self.binary,
            "arguments": list(self.arguments),
        }


@dataclass
class Output:
    """A decoded chunk of process output."""

    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: EventType = field(default=EventType.OUTPUT, init=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "text": self.text,
        }


@dataclass
class Finished:
    """The capture succeeded and the artifact is readable."""

    artifact_path: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: EventType = field(default=EventType.FINISHED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "artifact_path": self.artifact_path,
        }


@dataclass
class Failed:
    """The capture failed or the request was rejected."""

    reason: str
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: EventType = field(default=EventType.FAILED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
        }


RecordingEvent = Union[Started, Output, Finished, Failed]

"""Error taxonomy and process exit codes.

Every recoverable failure in a provisioning run is described by a
ProvisionError value whose kind is one of ErrorKind. Only
MISSING_COMPONENT ends the run; every other kind is reported against
the tool that produced it and the run carries on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto

__all__ = ["ErrorKind", "ExitCode", "ProvisionError"]


class ErrorKind(Enum):
    """What went wrong, independent of which tool it happened to."""

    TRANSPORT_UNAVAILABLE = auto()  # no way to speak HTTP(S) on this host
    FETCH_FAILED = auto()  # network or HTTP failure, or nothing landed on disk
    IO_ERROR = auto()  # local filesystem refused a read or write
    NO_EXTRACTOR_AVAILABLE = auto()
    EXTRACT_FAILED = auto()
    NOT_FOUND = auto()  # expected file absent after extraction or install
    POST_STEP_FAILED = auto()  # a tool's own installer command exited non-zero
    MISSING_COMPONENT = auto()  # fatal precondition
    CONFIG_INVALID = auto()  # options document replaced by defaults
    INSTALLER_ERROR = auto()  # installer raised instead of returning an error

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


@dataclass(frozen=True, slots=True)
class ProvisionError:
    """A failure value.

    Attributes:
        kind: Taxonomy entry
        message: One-line human-readable summary
        detail: Underlying cause (exception text, stderr), if any
    """

    kind: ErrorKind
    message: str
    detail: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class ExitCode(IntEnum):
    """Process exit codes.

    Partial tool failures still exit with OK: the closing verification
    report is the user's signal of overall success. Command-line usage
    errors are reported by typer before a run starts.
    """

    OK = 0
    MISSING_COMPONENT = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

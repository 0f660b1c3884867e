"""
Events produced by streaming pipelines.

A pipeline yields any number of DataEvent followed by exactly one terminal
event: CloseEvent on success or ErrorEvent on failure.
"""

from dataclasses import dataclass, field

from wpgp.exceptions import ErrorKind, WpgpError


@dataclass(frozen=True, slots=True)
class DataEvent:
    """A chunk of output bytes."""

    chunk: bytes


@dataclass(frozen=True, slots=True)
class CloseEvent:
    """The stream ended successfully."""


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """
    The stream failed. No events follow.

    Attributes:
        kind: Failure category.
        message: Human-readable reason.
        error: The exception that ended the stream, when there is one.
    """

    kind: ErrorKind
    message: str
    error: Exception | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_exception(cls, error: Exception) -> "ErrorEvent":
        if isinstance(error, WpgpError):
            return cls(kind=error.kind, message=str(error), error=error)
        if isinstance(error, OSError):
            return cls(kind=ErrorKind.IO, message=str(error), error=error)
        return cls(
            kind=ErrorKind.INTERNAL,
            message=f"{type(error).__name__}: {error}",
            error=error,
        )


StreamEvent = DataEvent | CloseEvent | ErrorEvent

from wpgp.exceptions import ErrorKind, IntegrityError
from wpgp.models.stream import CloseEvent, DataEvent, ErrorEvent


def test_error_event_from_wpgp_error_keeps_kind() -> None:
    error = IntegrityError("digest mismatch")

    event = ErrorEvent.from_exception(error)

    assert event.kind == ErrorKind.INTEGRITY
    assert event.message == "digest mismatch"
    assert event.error is error


def test_error_event_from_os_error_is_io() -> None:
    event = ErrorEvent.from_exception(FileNotFoundError("missing.bin"))

    assert event.kind == ErrorKind.IO


def test_error_event_from_unexpected_error_is_internal() -> None:
    event = ErrorEvent.from_exception(KeyError("x"))

    assert event.kind == ErrorKind.INTERNAL
    assert event.message.startswith("KeyError")


def test_events_compare_by_value() -> None:
    assert DataEvent(b"a") == DataEvent(b"a")
    assert CloseEvent() == CloseEvent()
    assert ErrorEvent(ErrorKind.IO, "x") == ErrorEvent(ErrorKind.IO, "x", error=OSError())

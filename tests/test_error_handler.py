import logging
from unittest.mock import Mock

from cloudtree.errors import (
    ApplicationError,
    ArgumentError,
    CatalogError,
    CloudTreeError,
    DomainError,
    InfrastructureError,
    NodeNotFoundError,
    NoMoreChildrenError,
    UserCancelledError,
)
from cloudtree.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity, parse_error
from cloudtree.events.bus import EventBus


def test_handle_error_logs_and_publishes():
    logger = Mock(spec=logging.Logger)
    event_bus = Mock(spec=EventBus)
    handler = ErrorHandler(logger, event_bus)

    error = ValueError("test error")
    handler.handle(error, ErrorSeverity.ERROR)

    logger.error.assert_called()
    event = event_bus.publish.call_args[0][0]
    assert isinstance(event, ErrorOccurredEvent)
    assert event.error == error
    assert event.severity == ErrorSeverity.ERROR


def test_ui_callback():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))
    callback = Mock()
    handler.register_ui_callback(callback)

    handler.handle(RuntimeError("ui error"), ErrorSeverity.CRITICAL)

    callback.assert_called_with("ui error", ErrorSeverity.CRITICAL)


def test_ignore_info_severity_in_ui():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger, Mock(spec=EventBus))
    callback = Mock()
    handler.register_ui_callback(callback)

    handler.handle(Exception("info"), ErrorSeverity.INFO)

    logger.info.assert_called()
    callback.assert_not_called()


def test_hierarchy():
    assert issubclass(NodeNotFoundError, DomainError)
    assert issubclass(NoMoreChildrenError, DomainError)
    assert issubclass(UserCancelledError, ApplicationError)
    assert issubclass(ArgumentError, ApplicationError)
    assert issubclass(CatalogError, InfrastructureError)
    for layer in (DomainError, ApplicationError, InfrastructureError):
        assert issubclass(layer, CloudTreeError)


def test_argument_error_keeps_argument():
    value = {"id": None}
    err = ArgumentError(value)
    assert err.argument is value
    assert "Invalid argument" in str(err)


def test_default_messages():
    assert str(NodeNotFoundError()) == "No matching resources found."
    assert str(UserCancelledError()) == "Operation cancelled."


def test_parse_error_exception():
    parsed = parse_error(KeyError("missing"))
    assert parsed.error_type == "KeyError"
    assert "missing" in parsed.message
    assert not parsed.is_user_cancelled


def test_parse_error_without_message_uses_type():
    assert parse_error(RuntimeError()).message == "RuntimeError"


def test_parse_error_user_cancelled():
    assert parse_error(UserCancelledError()).is_user_cancelled


def test_parse_error_non_exception_payloads():
    assert parse_error({"code": "Forbidden", "message": "denied"}).error_type == "Forbidden"
    assert parse_error({"code": "Forbidden", "message": "denied"}).message == "denied"
    assert parse_error("plain text").message == "plain text"

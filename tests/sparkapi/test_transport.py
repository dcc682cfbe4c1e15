"""Tests for the one-shot HTTP call and response dispatch."""

import logging
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from core.errors.exceptions import (
    AuthorizationFailedError,
    CallAlreadyExecutedError,
    ErrorCategory,
    TransportFailure,
)
from sparkapi.handler import ResponseHandler
from sparkapi.transport import HttpCall, TransportResponse, dispatch_response

URL = "https://api.ciscospark.com/v1/rooms"


def _http_response(status=200, body=b"{}", headers=None):
    """Create a mock async context manager for an aiohttp response."""
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.headers = headers or {"Content-Type": "application/json"}
    mock_resp.read = AsyncMock(return_value=body)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def _mock_session(*responses):
    session = MagicMock()
    session.closed = False
    session.request = MagicMock(side_effect=list(responses))
    return session


def _mock_handler():
    handler = MagicMock(spec=ResponseHandler)
    handler.on_success = AsyncMock()
    handler.on_failure = AsyncMock()
    return handler


def _response(status, body=b""):
    return TransportResponse(status=status, body=body, url=URL, method="GET")


class TestTransportResponse:
    def test_ok(self):
        assert _response(200).ok
        assert _response(204).ok
        assert not _response(401).ok

    def test_json(self):
        assert _response(200, b'{"id": "r1"}').json() == {"id": "r1"}

    def test_empty_body_json_is_none(self):
        assert _response(204).json() is None

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            _response(200, b"not json").json()

    def test_text(self):
        assert _response(200, "héllo".encode()).text() == "héllo"


class TestHttpCallExecute:
    async def test_sends_request(self):
        session = _mock_session(_http_response(200, b'{"id": "r1"}'))
        timeout = aiohttp.ClientTimeout(total=5)
        call = HttpCall(
            session,
            "get",
            URL,
            headers={"Authorization": "Bearer T1"},
            params={"max": 10},
            timeout=timeout,
        )

        response = await call.execute()

        assert response.status == 200
        assert response.json() == {"id": "r1"}
        assert response.headers["Content-Type"] == "application/json"
        args, kwargs = session.request.call_args
        assert args == ("GET", URL)
        assert kwargs["headers"] == {"Authorization": "Bearer T1"}
        assert kwargs["params"] == {"max": 10}
        assert kwargs["timeout"] is timeout

    async def test_second_execute_raises(self):
        call = HttpCall(_mock_session(_http_response()), "GET", URL)
        await call.execute()

        assert call.executed
        with pytest.raises(CallAlreadyExecutedError):
            await call.execute()

    async def test_connection_error_becomes_transport_failure(self):
        session = MagicMock()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        call = HttpCall(session, "GET", URL)

        with pytest.raises(TransportFailure) as exc_info:
            await call.execute()

        assert exc_info.value.status_code is None
        assert exc_info.value.category == ErrorCategory.TRANSIENT

    async def test_timeout_becomes_transport_failure(self):
        session = MagicMock()
        session.request = MagicMock(side_effect=TimeoutError())
        call = HttpCall(session, "GET", URL)

        with pytest.raises(TransportFailure, match="Timeout"):
            await call.execute()

    async def test_body_logged_only_when_enabled(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="sparkapi.transport"):
            await HttpCall(_mock_session(_http_response(200, b"secret-body")), "GET", URL).execute()
        assert not any(getattr(r, "http_body", None) for r in caplog.records)

        caplog.clear()
        with caplog.at_level(logging.DEBUG, logger="sparkapi.transport"):
            await HttpCall(
                _mock_session(_http_response(200, b"visible-body")), "GET", URL, log_body=True
            ).execute()
        assert any(getattr(r, "http_body", None) == "visible-body" for r in caplog.records)

    def test_authorization_property(self):
        call = HttpCall(MagicMock(), "GET", URL, headers={"Authorization": "Bearer T1"})
        assert call.authorization == "Bearer T1"


class TestHttpCallEnqueue:
    async def test_success(self):
        handler = _mock_handler()
        await HttpCall(_mock_session(_http_response(200)), "GET", URL).enqueue(handler)

        handler.on_success.assert_awaited_once()
        assert handler.on_success.call_args.args[0].status == 200

    async def test_transport_failure_goes_to_handler(self):
        session = MagicMock()
        session.request = MagicMock(side_effect=aiohttp.ServerDisconnectedError())
        handler = _mock_handler()

        await HttpCall(session, "GET", URL).enqueue(handler)

        assert isinstance(handler.on_failure.call_args.args[0], TransportFailure)

    async def test_unauthorized_listener(self):
        handler = _mock_handler()
        listener = AsyncMock()

        await HttpCall(_mock_session(_http_response(401)), "GET", URL).enqueue(handler, listener)

        listener.assert_awaited_once()
        assert listener.call_args.args[0].status == 401
        handler.on_success.assert_not_awaited()
        handler.on_failure.assert_not_awaited()

    async def test_second_enqueue_raises(self):
        call = HttpCall(_mock_session(_http_response(200)), "GET", URL)
        await call.enqueue(_mock_handler())

        with pytest.raises(CallAlreadyExecutedError):
            await call.enqueue(_mock_handler())


class TestDispatchResponse:
    async def test_401_without_listener(self):
        handler = _mock_handler()
        response = _response(401)

        await dispatch_response(response, handler)

        error = handler.on_failure.call_args.args[0]
        assert isinstance(error, AuthorizationFailedError)
        assert error.response is response
        assert error.status_code == 401

    async def test_plain_listener(self):
        seen = []
        await dispatch_response(_response(401), _mock_handler(), seen.append)
        assert seen[0].status == 401

    async def test_not_found_is_permanent_failure(self):
        handler = _mock_handler()

        await dispatch_response(_response(404, b"no such room"), handler, AsyncMock())

        error = handler.on_failure.call_args.args[0]
        assert isinstance(error, TransportFailure)
        assert error.status_code == 404
        assert error.category == ErrorCategory.PERMANENT
        assert "no such room" in error.message

    async def test_server_error_is_transient_failure(self):
        handler = _mock_handler()
        await dispatch_response(_response(503), handler)
        assert handler.on_failure.call_args.args[0].category == ErrorCategory.TRANSIENT

    async def test_listener_not_used_for_other_errors(self):
        listener = AsyncMock()
        await dispatch_response(_response(403), _mock_handler(), listener)
        listener.assert_not_awaited()

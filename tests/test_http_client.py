from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from requests import Response
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from storefront_fx.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError


def make_response(status_code: int, json_data: object | None = None) -> Response:
    resp = MagicMock(spec=Response)
    resp.status_code = status_code
    resp.text = "error"
    if json_data is None:
        resp.json.side_effect = ValueError("no json")  # type: ignore[attr-defined]
    else:
        resp.json.return_value = json_data  # type: ignore[attr-defined]
    return resp


@pytest.fixture()
def session():
    return MagicMock()


@pytest.fixture()
def client(session):
    config = HTTPClientConfig(base_url="https://example.com/", timeout=2.5)
    return HTTPClient(config=config, session=session)


def test_http_client_success(client, session):
    session.get.return_value = make_response(200, {"ok": True})

    payload = client.get("/live", params={"foo": "bar"})

    assert payload == {"ok": True}
    session.get.assert_called_once_with(
        "https://example.com/live", params={"foo": "bar"}, timeout=2.5
    )


def test_http_client_makes_a_single_attempt_on_server_error(client, session):
    session.get.return_value = make_response(500)

    with pytest.raises(HTTPClientError) as exc_info:
        client.get("/live")

    assert exc_info.value.status_code == 500
    assert exc_info.value.timed_out is False
    assert session.get.call_count == 1


def test_http_client_reports_client_errors(client, session):
    session.get.return_value = make_response(404)

    with pytest.raises(HTTPClientError) as exc_info:
        client.get("/missing")

    assert exc_info.value.status_code == 404
    assert "Client error 404" in str(exc_info.value)


def test_http_client_flags_timeouts(client, session):
    session.get.side_effect = Timeout("read timed out")

    with pytest.raises(HTTPClientError) as exc_info:
        client.get("/live")

    assert exc_info.value.timed_out is True
    assert exc_info.value.status_code is None
    assert session.get.call_count == 1


def test_http_client_wraps_transport_errors(client, session):
    session.get.side_effect = RequestsConnectionError("connection refused")

    with pytest.raises(HTTPClientError) as exc_info:
        client.get("/live")

    assert exc_info.value.timed_out is False
    assert "connection refused" in str(exc_info.value)


def test_http_client_rejects_invalid_json(client, session):
    session.get.return_value = make_response(200)

    with pytest.raises(HTTPClientError, match="Invalid JSON"):
        client.get("/live")


def test_http_client_rejects_non_object_json(client, session):
    session.get.return_value = make_response(200, [1, 2, 3])

    with pytest.raises(HTTPClientError, match="JSON object"):
        client.get("/live")

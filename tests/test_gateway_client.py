from unittest.mock import Mock

import pytest
import requests

from checkout.domain.errors import GatewayUnavailableError
from checkout.services.gateway_client import GatewayClient


def _response(status=200, body=None):
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = body or {}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("tenacity.nap.time.sleep", lambda seconds: None)


def _client(session):
    return GatewayClient(
        base_url="https://gateway.test/",
        key_id="rzp_test_key",
        key_secret="secret",
        timeout=2,
        session=session,
    )


def test_create_intent():
    session = Mock()
    session.request.return_value = _response(
        body={"id": "order_abc", "amount": 5997, "currency": "INR", "status": "created"}
    )

    intent = _client(session).create_intent(7, 5997, "INR")

    assert intent.gateway_order_id == "order_abc"
    assert intent.amount == 5997
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", "https://gateway.test/v1/orders")
    assert kwargs["json"]["amount"] == 5997
    assert kwargs["json"]["receipt"] == "7"
    assert kwargs["auth"] == ("rzp_test_key", "secret")
    assert kwargs["timeout"] == 2


def test_retries_server_errors():
    session = Mock()
    session.request.side_effect = [
        _response(status=503),
        _response(body={"id": "order_abc", "amount": 100, "currency": "INR", "status": "created"}),
    ]

    intent = _client(session).create_intent(1, 100, "INR")

    assert intent.gateway_order_id == "order_abc"
    assert session.request.call_count == 2


def test_client_errors_are_not_retried():
    session = Mock()
    session.request.return_value = _response(status=400)

    with pytest.raises(GatewayUnavailableError):
        _client(session).create_intent(1, 100, "INR")

    assert session.request.call_count == 1


def test_unreachable_gateway():
    session = Mock()
    session.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(GatewayUnavailableError) as exc:
        _client(session).create_intent(1, 100, "INR")

    assert exc.value.status_code == 502
    assert session.request.call_count == 3


def test_missing_credentials():
    session = Mock()
    client = GatewayClient(key_id="", key_secret="", session=session)

    with pytest.raises(GatewayUnavailableError):
        client.create_intent(1, 100, "INR")

    session.request.assert_not_called()


def test_fetch_payment():
    session = Mock()
    session.request.return_value = _response(body={"id": "pay_1", "status": "captured"})

    assert _client(session).fetch_payment("pay_1")["status"] == "captured"
    assert session.request.call_args.args == ("GET", "https://gateway.test/v1/payments/pay_1")

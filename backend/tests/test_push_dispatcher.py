import httpx
import pytest

from fellowship.core.errors import PushGatewayError, PushTransportError
from fellowship.services.notifications.push import ExpoPushClient, PushDispatcher, build_push_messages, chunk
from fellowship.services.notifications.types import PushContent, TokenTarget

CONTENT = PushContent(title="Alice liked your event", body="Picnic", data={"route": "/event/1"})


def _messages(n):
    return build_push_messages(CONTENT, [TokenTarget(user_id=i, token=f"ExponentPushToken[{i}]") for i in range(n)])


def _timeout(request):
    raise httpx.ReadTimeout("timed out", request=request)


def test_message_shape():
    (message,) = _messages(1)
    assert message == {
        "to": "ExponentPushToken[0]",
        "title": "Alice liked your event",
        "body": "Picnic",
        "data": {"route": "/event/1"},
        "sound": "default",
        "badge": 1,
    }


def test_chunk_sizes():
    assert [len(c) for c in chunk(list(range(250)), 100)] == [100, 100, 50]
    assert list(chunk([], 100)) == []


@pytest.mark.parametrize("n,calls", [(1, 1), (100, 1), (101, 2), (250, 3)])
def test_one_gateway_call_per_hundred_messages(fake_expo, n, calls):
    result = fake_expo.dispatcher().dispatch(_messages(n))
    assert len(fake_expo.batches) == calls
    assert all(len(b) <= 100 for b in fake_expo.batches)
    assert result.sent == n
    assert result.failed == 0


def test_empty_dispatch_makes_no_call(fake_expo):
    result = fake_expo.dispatcher().dispatch([])
    assert fake_expo.batches == []
    assert result.tokens == 0


def test_device_not_registered_calls_disable_callback(expo_factory):
    def ticket_for(message):
        if message["to"] == "ExponentPushToken[1]":
            return {
                "status": "error",
                "message": "not registered",
                "details": {"error": "DeviceNotRegistered"},
            }
        return {"status": "ok", "id": "t"}

    expo = expo_factory(ticket_for=ticket_for)
    disabled = []
    result = expo.dispatcher(on_device_not_registered=disabled.append).dispatch(_messages(2))
    assert disabled == ["ExponentPushToken[1]"]
    assert result.sent == 1
    assert result.failed == 1
    assert result.errors[0]["error"] == "DeviceNotRegistered"


def test_disable_callback_failure_does_not_stop_dispatch(expo_factory):
    expo = expo_factory(ticket_for=lambda m: {"status": "error", "details": {"error": "DeviceNotRegistered"}})

    def explode(token):
        raise RuntimeError("store down")

    result = expo.dispatcher(on_device_not_registered=explode).dispatch(_messages(3))
    assert result.failed == 3


def test_other_ticket_errors_are_counted(expo_factory):
    codes = iter(["InvalidCredentials", "MessageTooBig", "MessageRateExceeded"])
    expo = expo_factory(ticket_for=lambda m: {"status": "error", "details": {"error": next(codes)}})
    disabled = []
    result = expo.dispatcher(on_device_not_registered=disabled.append).dispatch(_messages(3))
    assert result.failed == 3
    assert [e["error"] for e in result.errors] == ["InvalidCredentials", "MessageTooBig", "MessageRateExceeded"]
    assert disabled == []


def test_missing_ticket_counts_as_failed(expo_factory):
    expo = expo_factory(responses=[lambda request: httpx.Response(200, json={"data": [{"status": "ok"}]})])
    result = expo.dispatcher().dispatch(_messages(2))
    assert result.sent == 1
    assert result.failed == 1
    assert result.errors[0]["error"] == "MissingTicket"


def test_timeouts_exhaust_retries_then_fail_batch(expo_factory):
    expo = expo_factory(responses=[_timeout, _timeout, _timeout])
    sleeps = []
    result = expo.dispatcher(max_attempts=3, retry_delay_seconds=1.0, sleep=sleeps.append).dispatch(_messages(5))
    assert len(expo.batches) == 3
    assert sleeps == [1.0, 2.0]
    assert result.sent == 0
    assert result.failed == 5
    assert result.errors == [
        {"batch": 1, "error": "NetworkError", "message": result.errors[0]["message"], "messagesAffected": 5}
    ]


def test_server_error_is_retried_then_succeeds(expo_factory):
    expo = expo_factory(responses=[lambda request: httpx.Response(503, text="busy")])
    result = expo.dispatcher(max_attempts=3).dispatch(_messages(2))
    assert len(expo.batches) == 2
    assert result.sent == 2


def test_client_error_is_not_retried(expo_factory):
    expo = expo_factory(responses=[lambda request: httpx.Response(400, json={"errors": ["bad"]})])
    result = expo.dispatcher(max_attempts=3).dispatch(_messages(2))
    assert len(expo.batches) == 1
    assert result.failed == 2
    assert result.errors[0]["error"] == "GatewayError"


def test_failed_batch_does_not_stop_later_batches(expo_factory):
    expo = expo_factory(responses=[lambda request: httpx.Response(400, text="bad")])
    result = expo.dispatcher().dispatch(_messages(150))
    assert len(expo.batches) == 2
    assert result.failed == 100
    assert result.sent == 50


def test_client_sends_bearer_token_when_configured():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"data": [{"status": "ok"}]})

    client = ExpoPushClient(url="https://expo.test/send", access_token="secret", transport=httpx.MockTransport(handler))
    assert client.send_batch(_messages(1)) == [{"status": "ok"}]
    assert seen["auth"] == "Bearer secret"


def test_client_error_classes():
    def server_error(request):
        return httpx.Response(502)

    def not_json(request):
        return httpx.Response(200, text="<html>")

    with pytest.raises(PushTransportError):
        ExpoPushClient(url="https://expo.test/send", transport=httpx.MockTransport(server_error)).send_batch([])
    with pytest.raises(PushTransportError):
        ExpoPushClient(url="https://expo.test/send", transport=httpx.MockTransport(_timeout)).send_batch([])
    with pytest.raises(PushGatewayError) as exc_info:
        ExpoPushClient(url="https://expo.test/send", transport=httpx.MockTransport(not_json)).send_batch([])
    assert not isinstance(exc_info.value, PushTransportError)


def test_corrupt_gzip_body_fails_only_its_batch(expo_factory):
    def corrupt(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    expo = expo_factory(responses=[corrupt])
    result = expo.dispatcher(max_attempts=3).dispatch(_messages(150))
    assert len(expo.batches) == 2
    assert result.failed == 100
    assert result.sent == 50
    assert result.errors[0]["error"] == "GatewayError"
    assert result.errors[0]["messagesAffected"] == 100


def test_ticket_details_that_are_not_a_dict(expo_factory):
    expo = expo_factory(ticket_for=lambda m: {"status": "error", "details": "DeviceNotRegistered"})
    disabled = []
    result = expo.dispatcher(on_device_not_registered=disabled.append).dispatch(_messages(2))
    assert result.sent == 0
    assert result.failed == 2
    assert [e["error"] for e in result.errors] == [None, None]
    assert disabled == []


def test_unexpected_client_error_fails_batch_and_continues():
    class FlakyClient:
        def __init__(self):
            self.calls = 0

        def send_batch(self, messages):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("boom")
            return [{"status": "ok"} for _ in messages]

    client = FlakyClient()
    result = PushDispatcher(client, sleep=lambda seconds: None).dispatch(_messages(150))
    assert client.calls == 2
    assert (result.sent, result.failed) == (50, 100)
    assert result.errors == [{"batch": 1, "error": "GatewayError", "message": "boom", "messagesAffected": 100}]

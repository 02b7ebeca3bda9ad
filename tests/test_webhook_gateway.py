"""
Webhook gateway: reply normalization and error classification.
"""
import json
from unittest.mock import patch

import pytest
import requests

from app.errors import ConfigurationMissing, MalformedReply, RemoteRejected, Unreachable
from app.services.webhook_gateway import WORKFLOW_STARTED, WebhookGateway, extract_reply
from tests.conftest import WEBHOOK_URL, make_response


@pytest.fixture
def gateway(http) -> WebhookGateway:
    return WebhookGateway(webhook_url=WEBHOOK_URL, auth_token="", timeout=30.0, http=http)


# Reply normalization
# --------------------------------------

def test_response_field_wins():
    assert extract_reply({"response": "X", "message": "Y", "output": "Z", "text": "W"}) == "X"


def test_field_priority_order():
    assert extract_reply({"message": "Y", "output": "Z", "text": "W"}) == "Y"
    assert extract_reply({"output": "Z", "text": "W"}) == "Z"
    assert extract_reply({"text": "W"}) == "W"


def test_workflow_started_message_is_skipped():
    assert extract_reply({"message": WORKFLOW_STARTED, "output": "Real answer"}) == "Real answer"


def test_workflow_started_alone_falls_back_to_raw_json():
    assert extract_reply({"message": "Workflow was started"}) == '{"message":"Workflow was started"}'


def test_other_message_values_are_not_treated_as_sentinels():
    assert extract_reply({"message": "Workflow was stopped"}) == "Workflow was stopped"


def test_empty_values_count_as_absent():
    assert extract_reply({"response": "", "message": None, "output": "ok"}) == "ok"


def test_unknown_shape_is_serialized_verbatim():
    payload = {"data": {"answer": "42"}, "status": "done"}
    assert extract_reply(payload) == json.dumps(payload, separators=(",", ":"))


def test_non_ascii_is_kept_in_fallback():
    assert extract_reply({"reply": "héllo"}) == '{"reply":"héllo"}'


def test_non_object_body_is_serialized():
    assert extract_reply([{"response": "X"}]) == '[{"response":"X"}]'
    assert extract_reply("plain") == '"plain"'


def test_non_string_field_value_is_serialized():
    assert extract_reply({"output": {"text": "nested"}}) == '{"text":"nested"}'


# Sending
# --------------------------------------

def test_send_posts_once_with_expected_body(gateway, http):
    http.post.return_value = make_response(body=b'{"response": "Hi there!"}')

    reply = gateway.send("Hello", "session-1", "a@b.co")

    assert reply == "Hi there!"
    http.post.assert_called_once()
    args, kwargs = http.post.call_args
    assert args == (WEBHOOK_URL,)
    body = kwargs["json"]
    assert body["action"] == "chat"
    assert body["message"] == "Hello"
    assert body["sessionId"] == "session-1"
    assert body["email"] == "a@b.co"
    assert body["timestamp"].endswith("Z")
    assert kwargs["timeout"] == 30.0
    assert "auth" not in kwargs["headers"]


def test_email_is_omitted_when_absent(gateway, http):
    http.post.return_value = make_response(body=b'{"text": "ok"}')
    gateway.send("Hello", "session-1")
    assert "email" not in http.post.call_args.kwargs["json"]


def test_auth_header_sent_when_token_configured(http):
    http.post.return_value = make_response(body=b'{"text": "ok"}')
    gateway = WebhookGateway(webhook_url=WEBHOOK_URL, auth_token="s3cret", http=http)
    gateway.send("Hello", "session-1")
    assert http.post.call_args.kwargs["headers"]["auth"] == "s3cret"


def test_non_2xx_is_remote_rejected(gateway, http):
    http.post.return_value = make_response(status=503, body=b"down", reason="Service Unavailable")
    with pytest.raises(RemoteRejected) as exc_info:
        gateway.send("Hello", "session-1")
    assert exc_info.value.kind == "remote_rejected"
    assert exc_info.value.detail == "503 Service Unavailable"


def test_timeout_is_unreachable(gateway, http):
    http.post.side_effect = requests.exceptions.Timeout("read timed out")
    with pytest.raises(Unreachable):
        gateway.send("Hello", "session-1")
    assert http.post.call_count == 1


def test_connection_error_is_unreachable(gateway, http):
    http.post.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(Unreachable):
        gateway.send("Hello", "session-1")


def test_non_json_body_is_malformed(gateway, http):
    http.post.return_value = make_response(body=b"<html>oops</html>")
    with pytest.raises(MalformedReply):
        gateway.send("Hello", "session-1")


def test_missing_url_is_configuration_missing(http):
    gateway = WebhookGateway(webhook_url="", http=http)
    assert not gateway.is_configured
    with pytest.raises(ConfigurationMissing):
        gateway.send("Hello", "session-1")
    http.post.assert_not_called()


def test_whole_floats_print_like_javascript():
    assert extract_reply({"score": 1.0, "ratio": 0.5, "items": [2.0, {"n": 3.0}]}) == \
        '{"score":1,"ratio":0.5,"items":[2,{"n":3}]}'


def test_default_transport_posts_per_call():
    gateway = WebhookGateway(webhook_url=WEBHOOK_URL, auth_token="")
    with patch("app.services.webhook_gateway.requests.post") as post:
        post.return_value = make_response(body=b'{"response": "ok"}')
        assert gateway.send("Hello", "session-1") == "ok"
    post.assert_called_once()

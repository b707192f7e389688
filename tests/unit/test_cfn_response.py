"""
Unit tests for the CloudFormation callback notifier.

Tests cover:
- Request shape: method, headers, body, timeouts, redirects
- Status handling: 2xx vs everything else
- Network fault classification
"""

import json
import socket

import pytest
import requests
from urllib3.exceptions import MaxRetryError, NameResolutionError, NewConnectionError

from subscriptions.shared.exceptions import CallbackDeliveryError, CallbackFailureCause
from subscriptions.shared.models.custom_resource import (
    CallbackEnvelope,
    CallbackStatus,
    CallbackTarget,
)
from subscriptions.shared.tools import cfn_response
from subscriptions.shared.tools.cfn_response import CallbackNotifier


@pytest.fixture
def target(response_url) -> CallbackTarget:
    return CallbackTarget(
        response_url=response_url,
        stack_id="stack-1",
        request_id="req-1",
        logical_resource_id="EmailSubscriptions",
    )


@pytest.fixture
def notifier(fake_session) -> CallbackNotifier:
    return CallbackNotifier(fake_session, timeout_seconds=60)


class TestCallbackRequest:
    """Tests for the outbound PUT."""

    def test_single_put_to_response_url(self, notifier, fake_session, target, response_url):
        notifier.notify(target, CallbackStatus.SUCCESS, "done")

        fake_session.put.assert_called_once()
        assert fake_session.put.call_args.args[0] == response_url

    def test_headers_and_body(self, notifier, fake_session, target):
        """Test JSON content type and exact Content-Length."""
        notifier.notify(target, CallbackStatus.SUCCESS, "done")

        kwargs = fake_session.put.call_args.kwargs
        body = kwargs["data"]
        assert isinstance(body, bytes)
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["Content-Length"] == str(len(body))
        assert json.loads(body) == {
            "Status": "SUCCESS",
            "Reason": "done",
            "PhysicalResourceId": "EmailSubscriptions",
            "StackId": "stack-1",
            "RequestId": "req-1",
            "LogicalResourceId": "EmailSubscriptions",
            "Data": {},
        }

    def test_body_round_trips_to_envelope(self, notifier, fake_session, target):
        notifier.notify(target, CallbackStatus.FAILED, "nope")

        body = fake_session.put.call_args.kwargs["data"]
        parsed = CallbackEnvelope.model_validate_json(body)
        assert parsed == notifier.build_envelope(target, CallbackStatus.FAILED, "nope")

    def test_content_length_counts_bytes(self, notifier, fake_session, target):
        """Test non-ASCII reasons are measured in encoded bytes."""
        notifier.notify(target, CallbackStatus.FAILED, "adresse invalide: é@x.com")

        kwargs = fake_session.put.call_args.kwargs
        assert kwargs["headers"]["Content-Length"] == str(len(kwargs["data"]))

    def test_bounded_timeouts_and_no_redirects(self, notifier, fake_session, target):
        notifier.notify(target, CallbackStatus.SUCCESS, "done")

        kwargs = fake_session.put.call_args.kwargs
        assert kwargs["timeout"] == (60, 60)
        assert kwargs["allow_redirects"] is False

    def test_timeout_defaults_from_settings(self, fake_session, target):
        notifier = CallbackNotifier(fake_session)

        notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert fake_session.put.call_args.kwargs["timeout"] == (60.0, 60.0)

    def test_reason_truncated(self, fake_session, target):
        notifier = CallbackNotifier(fake_session, max_reason_length=64)

        notifier.notify(target, CallbackStatus.FAILED, "e" * 500)

        body = json.loads(fake_session.put.call_args.kwargs["data"])
        assert len(body["Reason"]) == 64


class TestCallbackStatusHandling:
    """Tests for HTTP status handling."""

    @pytest.mark.parametrize("status_code", [200, 201, 204, 299])
    def test_2xx_is_success(self, notifier, fake_session, target, status_code):
        fake_session.put.return_value.status_code = status_code

        notifier.notify(target, CallbackStatus.SUCCESS, "done")

    @pytest.mark.parametrize("status_code", [301, 302, 400, 403, 500])
    def test_non_2xx_raises(self, notifier, fake_session, target, status_code):
        """Test redirects and errors are failures."""
        fake_session.put.return_value.status_code = status_code
        fake_session.put.return_value.reason = "Nope"

        with pytest.raises(CallbackDeliveryError) as exc_info:
            notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert exc_info.value.cause is CallbackFailureCause.HTTP_STATUS
        assert exc_info.value.status_code == status_code


class TestCallbackNetworkFaults:
    """Tests for network fault classification."""

    @pytest.mark.parametrize(
        "error, cause",
        [
            (requests.exceptions.ConnectTimeout("connect timed out"), CallbackFailureCause.TIMEOUT),
            (requests.exceptions.ReadTimeout("read timed out"), CallbackFailureCause.TIMEOUT),
            (
                requests.exceptions.ConnectionError(
                    "Failed to resolve 'bad.invalid' ([Errno -2] Name or service not known)"
                ),
                CallbackFailureCause.DNS,
            ),
            (
                requests.exceptions.ConnectionError("[Errno 111] Connection refused"),
                CallbackFailureCause.CONNECTION,
            ),
            (requests.exceptions.ChunkedEncodingError("broken"), CallbackFailureCause.IO),
        ],
    )
    def test_fault_classified(self, notifier, fake_session, target, error, cause):
        fake_session.put.side_effect = error

        with pytest.raises(CallbackDeliveryError) as exc_info:
            notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is error

    def test_dns_detected_from_wrapped_urllib3_error(
        self, notifier, fake_session, target, monkeypatch
    ):
        """Test name resolution is recognised by type, not by message text."""
        monkeypatch.setattr(cfn_response, "DNS_FAILURE_MARKERS", ())
        resolution_error = NameResolutionError(
            "bad.invalid", None, socket.gaierror(-2, "Name or service not known")
        )
        fake_session.put.side_effect = requests.exceptions.ConnectionError(
            MaxRetryError(None, "/cb", reason=resolution_error)
        )

        with pytest.raises(CallbackDeliveryError) as exc_info:
            notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert exc_info.value.cause is CallbackFailureCause.DNS

    def test_wrapped_refused_connection_is_not_dns(self, notifier, fake_session, target):
        fake_session.put.side_effect = requests.exceptions.ConnectionError(
            MaxRetryError(None, "/cb", reason=NewConnectionError(None, "Connection refused"))
        )

        with pytest.raises(CallbackDeliveryError) as exc_info:
            notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert exc_info.value.cause is CallbackFailureCause.CONNECTION


class TestCallbackUrlValidation:
    """Tests for ResponseURL validation."""

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com/cb",
            "file:///etc/passwd",
            "https:///no-host",
            "not a url",
            "https://[bad-host/cb",
        ],
    )
    def test_invalid_url_rejected_without_request(self, notifier, fake_session, url):
        target = CallbackTarget(response_url=url, logical_resource_id="EmailSubscriptions")

        with pytest.raises(CallbackDeliveryError) as exc_info:
            notifier.notify(target, CallbackStatus.SUCCESS, "done")

        assert exc_info.value.cause is CallbackFailureCause.INVALID_URL
        fake_session.put.assert_not_called()

"""
CloudFormation Response Tools

Delivers a custom resource result to the pre-signed ResponseURL.

The URL is single-use and embeds a signature in its query string, so:
- exactly one PUT is sent per call, with no retries
- redirects are never followed
- only the host is logged, never the full URL
"""

from urllib.parse import urlparse

import requests
import structlog
from urllib3.exceptions import NameResolutionError

from subscriptions.shared.config import get_settings
from subscriptions.shared.exceptions import CallbackDeliveryError, CallbackFailureCause
from subscriptions.shared.models.custom_resource import (
    CallbackEnvelope,
    CallbackStatus,
    CallbackTarget,
)

log = structlog.get_logger()

ALLOWED_SCHEMES = ("http", "https")
MAX_LOGGED_RESPONSE_BODY = 512

# Fallback for errors that lost their NameResolutionError along the way
DNS_FAILURE_MARKERS = (
    "NameResolutionError",
    "Failed to resolve",
    "Name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "Temporary failure in name resolution",
)


def _validate_response_url(response_url: str) -> str:
    """
    Check the callback URL before anything is sent.

    Returns:
        The URL host, for logging

    Raises:
        CallbackDeliveryError: If the scheme or host is unusable
    """
    try:
        parsed_url = urlparse(response_url)
        hostname = parsed_url.hostname
    except ValueError as e:
        raise CallbackDeliveryError(
            cause=CallbackFailureCause.INVALID_URL,
            detail=f"Unparseable URL: {e}",
        ) from e

    if parsed_url.scheme not in ALLOWED_SCHEMES:
        raise CallbackDeliveryError(
            cause=CallbackFailureCause.INVALID_URL,
            detail=f"Unsupported URL scheme: '{parsed_url.scheme}'",
        )
    if not hostname:
        raise CallbackDeliveryError(
            cause=CallbackFailureCause.INVALID_URL,
            detail="URL has no host",
        )
    return hostname


def _underlying_errors(error: BaseException):
    """The error, the urllib3 errors requests wraps, and their causes."""
    pending = [error]
    seen = set()
    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(getattr(current, "reason", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))


def _classify_connection_error(error: requests.exceptions.ConnectionError) -> CallbackFailureCause:
    if any(isinstance(e, NameResolutionError) for e in _underlying_errors(error)):
        return CallbackFailureCause.DNS
    text = str(error)
    if any(marker in text for marker in DNS_FAILURE_MARKERS):
        return CallbackFailureCause.DNS
    return CallbackFailureCause.CONNECTION


class CallbackNotifier:
    """
    Sends CallbackEnvelopes to CloudFormation.

    Args:
        session: requests session (default: a new one)
        timeout_seconds: Connect and read timeout (default: from settings)
        max_reason_length: Reason cap (default: from settings)
        user_agent: User-Agent header (default: from settings)
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout_seconds: float | None = None,
        max_reason_length: int | None = None,
        user_agent: str | None = None,
    ) -> None:
        settings = get_settings()
        self._session = session if session is not None else requests.Session()
        self.timeout_seconds = timeout_seconds or settings.callback_timeout_seconds
        self.max_reason_length = max_reason_length or settings.callback_max_reason_length
        self.user_agent = user_agent or settings.callback_user_agent

    def build_envelope(
        self,
        target: CallbackTarget,
        status: CallbackStatus,
        reason: str,
    ) -> CallbackEnvelope:
        """Build the envelope for a target without sending it."""
        return CallbackEnvelope.for_target(
            target,
            status,
            reason,
            max_reason_length=self.max_reason_length,
        )

    def notify(
        self,
        target: CallbackTarget,
        status: CallbackStatus,
        reason: str,
    ) -> None:
        """
        PUT the result to target.response_url.

        Args:
            target: Callback URL and correlation identifiers
            status: SUCCESS or FAILED
            reason: Human-readable explanation (truncated if too long)

        Raises:
            CallbackDeliveryError: On invalid URL, network fault or non-2xx
        """
        host = _validate_response_url(target.response_url)

        envelope = self.build_envelope(target, status, reason)
        body = envelope.to_json().encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
            "User-Agent": self.user_agent,
        }

        log.info(
            "sending_callback",
            host=host,
            status=status.value,
            request_id=target.request_id,
            logical_resource_id=target.logical_resource_id,
            size_bytes=len(body),
        )

        try:
            response = self._session.put(
                target.response_url,
                data=body,
                headers=headers,
                timeout=(self.timeout_seconds, self.timeout_seconds),
                allow_redirects=False,
            )
        except requests.exceptions.Timeout as e:
            log.error("callback_timeout", host=host, error=str(e))
            raise CallbackDeliveryError(
                cause=CallbackFailureCause.TIMEOUT,
                detail=f"Timeout sending response to {host}: {e}",
            ) from e
        except requests.exceptions.ConnectionError as e:
            cause = _classify_connection_error(e)
            log.error("callback_connection_failed", host=host, cause=cause.value, error=str(e))
            raise CallbackDeliveryError(
                cause=cause,
                detail=f"Could not reach {host}: {e}",
            ) from e
        except requests.exceptions.RequestException as e:
            log.error("callback_io_failed", host=host, error=str(e))
            raise CallbackDeliveryError(
                cause=CallbackFailureCause.IO,
                detail=f"IO error sending response to {host}: {e}",
            ) from e

        log.debug(
            "callback_response",
            host=host,
            status_code=response.status_code,
            body=(response.text or "")[:MAX_LOGGED_RESPONSE_BODY],
        )

        if not 200 <= response.status_code < 300:
            log.error(
                "callback_rejected",
                host=host,
                status_code=response.status_code,
                http_reason=response.reason,
            )
            raise CallbackDeliveryError(
                cause=CallbackFailureCause.HTTP_STATUS,
                detail=f"HTTP {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
            )

        log.info(
            "callback_sent",
            host=host,
            status=status.value,
            status_code=response.status_code,
        )

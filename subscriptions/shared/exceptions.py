"""
Custom Exceptions for the Email Subscription Custom Resource

All exceptions follow the pattern of specific, actionable errors
with context needed for debugging and logging.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SubscriptionError(Exception):
    """Base exception for the email subscription custom resource."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


@dataclass
class MalformedRequestError(SubscriptionError):
    """Custom resource event is missing a required field."""

    field: str
    detail: str | None = None

    def __init__(self, field: str, detail: str | None = None) -> None:
        self.field = field
        self.detail = detail
        super().__init__(
            f"Malformed custom resource request: {detail or f'{field} is required'}",
            field=field,
        )


@dataclass
class UnsupportedLifecycleActionError(SubscriptionError):
    """RequestType is not one of Create, Update or Delete."""

    request_type: str

    def __init__(self, request_type: str) -> None:
        self.request_type = request_type
        super().__init__(
            f"Unsupported request type: '{request_type}'",
            request_type=request_type,
        )


# Error codes SNS returns when the endpoint is not a usable email address
INVALID_ADDRESS_ERROR_CODES = frozenset({"InvalidParameter", "InvalidParameterValue"})


@dataclass
class SubscriptionOperationError(SubscriptionError):
    """SNS subscribe, unsubscribe or list operation failed."""

    operation: str  # "subscribe", "unsubscribe", "list"
    address: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    def __init__(
        self,
        operation: str,
        address: str | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.operation = operation
        self.address = address
        self.error_code = error_code
        self.error_message = error_message
        super().__init__(
            f"SNS {operation} failed{f' for {address}' if address else ''}: "
            f"{error_message or 'Unknown error'}",
            operation=operation,
            address=address,
            error_code=error_code,
        )

    @property
    def is_invalid_address(self) -> bool:
        """Whether SNS rejected the endpoint itself."""
        return self.error_code in INVALID_ADDRESS_ERROR_CODES


@dataclass
class ReconciliationFailedError(SubscriptionError):
    """Every subscribe attempt of a Create/Update failed."""

    topic_arn: str
    failures: list  # list[AddressFailure]

    def __init__(self, topic_arn: str, failures: list) -> None:
        self.topic_arn = topic_arn
        self.failures = failures
        details = "; ".join(f"{f.address}: {f.reason}" for f in failures)
        super().__init__(
            f"Failed to subscribe any of {len(failures)} email addresses: {details}",
            topic_arn=topic_arn,
            failed_count=len(failures),
        )


class CallbackFailureCause(str, Enum):
    """Why the CloudFormation callback could not be delivered."""

    INVALID_URL = "invalid_url"
    DNS = "dns"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    IO = "io"
    HTTP_STATUS = "http_status"


@dataclass
class CallbackDeliveryError(SubscriptionError):
    """Sending the result to the CloudFormation ResponseURL failed."""

    cause: CallbackFailureCause
    detail: str | None = None
    status_code: int | None = None

    def __init__(
        self,
        cause: CallbackFailureCause,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.cause = cause
        self.detail = detail
        self.status_code = status_code
        super().__init__(
            f"CloudFormation callback failed ({cause.value}): {detail or 'Unknown error'}",
            cause=cause.value,
            status_code=status_code,
        )

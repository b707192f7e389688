"""
Custom Resource Models

Pydantic models for the CloudFormation custom resource contract:
the parsed request, the per-invocation outcome and the callback
envelope PUT to the pre-signed ResponseURL.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

TRUNCATION_MARKER = "..."
DEFAULT_MAX_REASON_LENGTH = 1024


class LifecycleAction(str, Enum):
    """CloudFormation RequestType."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    UNKNOWN = "Unknown"

    @classmethod
    def from_request_type(cls, request_type: str) -> "LifecycleAction":
        """Map a RequestType string, falling back to UNKNOWN."""
        try:
            action = cls(request_type)
        except ValueError:
            return cls.UNKNOWN
        return action


class CallbackStatus(str, Enum):
    """Result status reported to CloudFormation."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class CallbackTarget(BaseModel):
    """Where and on whose behalf a result is reported."""

    model_config = ConfigDict(frozen=True)

    response_url: str = Field(..., min_length=1, description="Pre-signed callback URL")
    stack_id: str = Field(default="", description="StackId, passed through")
    request_id: str = Field(default="", description="RequestId, passed through")
    logical_resource_id: str = Field(default="", description="LogicalResourceId, passed through")


class ReconciliationRequest(CallbackTarget):
    """Typed custom resource request."""

    action: LifecycleAction
    request_type: str = Field(..., description="RequestType exactly as received")
    topic_arn: str
    emails: tuple[str, ...] = Field(
        default=(),
        description="Trimmed, non-empty addresses in input order",
    )


@dataclass(frozen=True)
class AddressFailure:
    """One address that could not be (un)subscribed."""

    address: str
    reason: str


@dataclass
class ReconciliationOutcome:
    """
    Result of reconciling one request.

    Built fresh per invocation while iterating the desired addresses.
    """

    action: LifecycleAction
    succeeded_addresses: list[str] = field(default_factory=list)
    failures: list[AddressFailure] = field(default_factory=list)
    skipped_addresses: list[str] = field(default_factory=list)  # Delete: nothing to remove
    summary: str = ""

    @property
    def failed_addresses(self) -> list[str]:
        """Addresses that failed, in input order."""
        return [failure.address for failure in self.failures]


def truncate_reason(reason: str, max_length: int = DEFAULT_MAX_REASON_LENGTH) -> str:
    """Cap a Reason string, marking the cut."""
    if len(reason) <= max_length:
        return reason
    return reason[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


class CallbackEnvelope(BaseModel):
    """
    Response body for a CloudFormation custom resource.

    Attributes are snake_case; the wire format uses CloudFormation's
    field names via aliases. PhysicalResourceId is pinned to the
    LogicalResourceId so an Update is never treated as a replacement.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: CallbackStatus = Field(..., alias="Status")
    reason: str = Field(default="", alias="Reason")
    physical_resource_id: str = Field(..., alias="PhysicalResourceId")
    stack_id: str = Field(..., alias="StackId")
    request_id: str = Field(..., alias="RequestId")
    logical_resource_id: str = Field(..., alias="LogicalResourceId")
    data: dict[str, Any] = Field(default_factory=dict, alias="Data")

    @model_validator(mode="after")
    def _physical_id_matches_logical_id(self) -> "CallbackEnvelope":
        if self.physical_resource_id != self.logical_resource_id:
            raise ValueError(
                "PhysicalResourceId must equal LogicalResourceId "
                f"({self.physical_resource_id!r} != {self.logical_resource_id!r})"
            )
        return self

    @classmethod
    def for_target(
        cls,
        target: CallbackTarget,
        status: CallbackStatus,
        reason: str,
        *,
        max_reason_length: int = DEFAULT_MAX_REASON_LENGTH,
    ) -> "CallbackEnvelope":
        """Build the envelope answering the given request."""
        return cls(
            status=status,
            reason=truncate_reason(reason, max_reason_length),
            physical_resource_id=target.logical_resource_id,
            stack_id=target.stack_id,
            request_id=target.request_id,
            logical_resource_id=target.logical_resource_id,
        )

    def to_json(self) -> str:
        """Compact JSON body using CloudFormation field names."""
        return self.model_dump_json(by_alias=True)


@dataclass
class InvocationResult:
    """Outcome of one Lambda invocation."""

    succeeded: bool
    message: str
    callback_sent: bool = False
    callback_error: Exception | None = None  # CallbackDeliveryError

    def to_response(self) -> dict[str, Any]:
        """Direct-invocation return value."""
        return {
            "statusCode": 200 if self.succeeded else 500,
            "body": self.message,
        }

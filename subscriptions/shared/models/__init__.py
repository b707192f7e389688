# Shared Models
"""
Pydantic models for the CloudFormation custom resource contract.
"""

from subscriptions.shared.models.custom_resource import (
    AddressFailure,
    CallbackEnvelope,
    CallbackStatus,
    CallbackTarget,
    InvocationResult,
    LifecycleAction,
    ReconciliationOutcome,
    ReconciliationRequest,
)

__all__ = [
    # Request
    "LifecycleAction",
    "CallbackTarget",
    "ReconciliationRequest",
    # Outcome
    "AddressFailure",
    "ReconciliationOutcome",
    "InvocationResult",
    # Callback
    "CallbackStatus",
    "CallbackEnvelope",
]

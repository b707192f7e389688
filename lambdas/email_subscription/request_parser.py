"""
Request Parser for CloudFormation Custom Resource Events

Turns the raw custom resource event into a typed ReconciliationRequest.
Nothing past this module sees the untyped event.

Event shape:
    {
        "RequestType": "Create" | "Update" | "Delete",
        "ResponseURL": "<pre-signed URL>",
        "StackId": "...",
        "RequestId": "...",
        "LogicalResourceId": "...",
        "ResourceProperties": {
            "TopicArn": "...",
            "EmailList": ["a@x.com", "b@x.com"] | "a@x.com, b@x.com"
        }
    }
"""

from typing import Any

import structlog

from subscriptions.shared.exceptions import MalformedRequestError
from subscriptions.shared.models.custom_resource import (
    CallbackTarget,
    LifecycleAction,
    ReconciliationRequest,
)

log = structlog.get_logger()


def _optional_str(value: Any) -> str:
    """Correlation IDs pass through as-is; missing ones become empty."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _required_str(source: dict[str, Any], key: str, *, field_name: str | None = None) -> str:
    value = source.get(key)
    name = field_name or key
    if value is None:
        raise MalformedRequestError(field=name)
    if not isinstance(value, str):
        raise MalformedRequestError(
            field=name,
            detail=f"{name} must be a string, got {type(value).__name__}",
        )
    return value


def parse_email_list(value: Any) -> tuple[str, ...]:
    """
    Normalize the EmailList property.

    Accepts a list (elements coerced to str) or a comma-separated
    string. Tokens are trimmed and empty ones dropped; order and
    duplicates are preserved.

    Args:
        value: Raw EmailList value (list, str or None)

    Returns:
        Tuple of addresses

    Raises:
        MalformedRequestError: If the value is neither list nor string
    """
    if value is None:
        return ()

    if isinstance(value, str):
        tokens = value.split(",")
    elif isinstance(value, (list, tuple)):
        tokens = [str(item) for item in value if item is not None]
    else:
        raise MalformedRequestError(
            field="EmailList",
            detail=f"EmailList must be a list or comma-separated string, got {type(value).__name__}",
        )

    return tuple(token.strip() for token in tokens if token.strip())


def parse_callback_target(event: Any) -> CallbackTarget | None:
    """
    Extract only what is needed to answer CloudFormation.

    Used when the full request cannot be parsed, so a FAILED result can
    still be reported.

    Returns:
        CallbackTarget, or None if there is no usable ResponseURL
    """
    if not isinstance(event, dict):
        return None

    response_url = event.get("ResponseURL")
    if not isinstance(response_url, str) or not response_url:
        return None

    return CallbackTarget(
        response_url=response_url,
        stack_id=_optional_str(event.get("StackId")),
        request_id=_optional_str(event.get("RequestId")),
        logical_resource_id=_optional_str(event.get("LogicalResourceId")),
    )


def parse_request(event: Any) -> ReconciliationRequest:
    """
    Parse a custom resource event.

    Args:
        event: Raw Lambda event

    Returns:
        ReconciliationRequest

    Raises:
        MalformedRequestError: If RequestType, ResponseURL or
            ResourceProperties.TopicArn is missing or not a string
    """
    if not isinstance(event, dict):
        raise MalformedRequestError(
            field="event",
            detail=f"event must be a mapping, got {type(event).__name__}",
        )

    request_type = _required_str(event, "RequestType")
    response_url = _required_str(event, "ResponseURL")
    if not response_url:
        raise MalformedRequestError(field="ResponseURL")

    properties = event.get("ResourceProperties")
    if properties is None:
        properties = {}
    elif not isinstance(properties, dict):
        raise MalformedRequestError(
            field="ResourceProperties",
            detail="ResourceProperties must be a mapping",
        )

    topic_arn = _required_str(
        properties,
        "TopicArn",
        field_name="ResourceProperties.TopicArn",
    )
    emails = parse_email_list(properties.get("EmailList"))

    request = ReconciliationRequest(
        action=LifecycleAction.from_request_type(request_type),
        request_type=request_type,
        response_url=response_url,
        stack_id=_optional_str(event.get("StackId")),
        request_id=_optional_str(event.get("RequestId")),
        logical_resource_id=_optional_str(event.get("LogicalResourceId")),
        topic_arn=topic_arn,
        emails=emails,
    )

    log.debug(
        "request_parsed",
        request_type=request_type,
        topic_arn=topic_arn,
        email_count=len(emails),
        logical_resource_id=request.logical_resource_id,
    )

    return request

# Shared Tools
"""
Tool implementations for the custom resource.

SNS operations are safe to repeat; the CloudFormation callback is sent
exactly once per call.
"""

from subscriptions.shared.tools.sns import (
    EMAIL_PROTOCOL,
    PENDING_CONFIRMATION,
    SubscriptionService,
)
from subscriptions.shared.tools.cfn_response import CallbackNotifier

__all__ = [
    # SNS tools
    "EMAIL_PROTOCOL",
    "PENDING_CONFIRMATION",
    "SubscriptionService",
    # CloudFormation tools
    "CallbackNotifier",
]

"""
EmailSubscription Lambda

CloudFormation custom resource managing email subscriptions on an SNS topic.

Trigger: CloudFormation custom resource lifecycle events
Output: Result PUT to the pre-signed ResponseURL

Components:
- handler: Lambda entry point and parse → reconcile → notify orchestration
- request_parser: custom resource event → ReconciliationRequest
- reconciler: per-address subscribe/unsubscribe with outcome aggregation
"""

from lambdas.email_subscription.handler import EmailSubscriptionHandler, lambda_handler
from lambdas.email_subscription.reconciler import SubscriptionReconciler
from lambdas.email_subscription.request_parser import (
    parse_callback_target,
    parse_email_list,
    parse_request,
)

__all__ = [
    "lambda_handler",
    "EmailSubscriptionHandler",
    "SubscriptionReconciler",
    "parse_callback_target",
    "parse_email_list",
    "parse_request",
]

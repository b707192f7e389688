"""
EmailSubscription Lambda Handler

CloudFormation custom resource that keeps email subscriptions on an
SNS topic in line with the template's EmailList property.

Trigger: CloudFormation custom resource lifecycle (Create/Update/Delete)
Output: One PUT of the result to the event's ResponseURL

Flow:
1. Parse the custom resource event into a typed request
2. Reconcile the desired addresses against SNS
3. Report SUCCESS (with summary) or FAILED (with error) to CloudFormation
4. Return {statusCode, body} for direct-invocation diagnostics
"""

import logging
from functools import lru_cache
from typing import Any

import structlog

from lambdas.email_subscription.reconciler import SubscriptionReconciler
from lambdas.email_subscription.request_parser import parse_callback_target, parse_request
from subscriptions.shared.config import get_settings
from subscriptions.shared.exceptions import CallbackDeliveryError, MalformedRequestError
from subscriptions.shared.models.custom_resource import (
    CallbackStatus,
    CallbackTarget,
    InvocationResult,
)
from subscriptions.shared.tools.cfn_response import CallbackNotifier
from subscriptions.shared.tools.sns import SubscriptionService

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.getLogger().setLevel(get_settings().log_level)

log = structlog.get_logger()


def _error_message(error: Exception) -> str:
    """Message reported to CloudFormation, without logging context."""
    return getattr(error, "message", None) or str(error) or type(error).__name__


class EmailSubscriptionHandler:
    """
    Parse → reconcile → notify.

    Exactly one callback is attempted per invocation once a ResponseURL
    is known. A failed callback is logged and attached to the result; it
    never replaces the reconciliation outcome.
    """

    def __init__(self, reconciler: SubscriptionReconciler, notifier: CallbackNotifier) -> None:
        self.reconciler = reconciler
        self.notifier = notifier

    def handle(self, event: Any) -> InvocationResult:
        """
        Process one custom resource event.

        Args:
            event: Raw CloudFormation custom resource event

        A CallbackDeliveryError is not raised to the caller. It is logged and
        returned as result.callback_error instead, so succeeded and message
        always describe the reconciliation rather than the callback.

        Returns:
            InvocationResult with the original outcome and any callback error
        """
        try:
            request = parse_request(event)
        except MalformedRequestError as e:
            log.error("malformed_request", field=e.field, error=e.message)
            result = InvocationResult(succeeded=False, message=e.message)
            target = parse_callback_target(event)
            if target is None:
                log.warning("no_callback_possible", reason="missing ResponseURL")
                return result
            return self._report(target, CallbackStatus.FAILED, e.message, result)

        log.info(
            "custom_resource_request",
            request_type=request.request_type,
            stack_id=request.stack_id,
            request_id=request.request_id,
            logical_resource_id=request.logical_resource_id,
            topic_arn=request.topic_arn,
            email_count=len(request.emails),
        )

        try:
            outcome = self.reconciler.reconcile(request)
        except Exception as e:
            log.exception(
                "reconciliation_failed",
                request_type=request.request_type,
                topic_arn=request.topic_arn,
                error=str(e),
            )
            message = _error_message(e)
            result = InvocationResult(succeeded=False, message=message)
            return self._report(request, CallbackStatus.FAILED, message, result)

        result = InvocationResult(succeeded=True, message=outcome.summary)
        return self._report(request, CallbackStatus.SUCCESS, outcome.summary, result)

    def _report(
        self,
        target: CallbackTarget,
        status: CallbackStatus,
        reason: str,
        result: InvocationResult,
    ) -> InvocationResult:
        try:
            self.notifier.notify(target, status, reason)
        except CallbackDeliveryError as e:
            log.error(
                "callback_delivery_failed",
                status=status.value,
                cause=e.cause.value,
                status_code=e.status_code,
                error=e.message,
            )
            result.callback_error = e
            return result

        result.callback_sent = True
        return result


@lru_cache(maxsize=1)
def get_handler() -> EmailSubscriptionHandler:
    """Build the process-wide handler once; clients are reused across invocations."""
    return EmailSubscriptionHandler(
        reconciler=SubscriptionReconciler(SubscriptionService()),
        notifier=CallbackNotifier(),
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Main Lambda handler for the email subscription custom resource.

    Args:
        event: CloudFormation custom resource event
        context: Lambda context

    Returns:
        {"statusCode": 200|500, "body": message}
    """
    log.info(
        "email_subscription_invoked",
        request_type=event.get("RequestType") if isinstance(event, dict) else None,
        aws_request_id=getattr(context, "aws_request_id", None),
    )

    result = get_handler().handle(event)

    if result.callback_error is not None:
        log.error(
            "custom_resource_callback_not_delivered",
            error=str(result.callback_error),
            succeeded=result.succeeded,
        )

    log.info(
        "email_subscription_completed",
        succeeded=result.succeeded,
        callback_sent=result.callback_sent,
        message=result.message,
    )

    return result.to_response()

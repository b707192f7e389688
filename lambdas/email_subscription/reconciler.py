"""
Subscription Reconciler

Applies a ReconciliationRequest to SNS, one address at a time.

Create/Update:
- subscribe every desired address; failures are collected, not raised
- if every address failed, raise ReconciliationFailedError so the
  resource reports FAILED and provisioning stops

Delete:
- look up each address's confirmed subscription and unsubscribe it
- addresses with no subscription are already clean
- never raises for per-address problems, so stack teardown can finish
"""

import structlog

from subscriptions.shared.exceptions import (
    ReconciliationFailedError,
    SubscriptionOperationError,
    UnsupportedLifecycleActionError,
)
from subscriptions.shared.models.custom_resource import (
    AddressFailure,
    LifecycleAction,
    ReconciliationOutcome,
    ReconciliationRequest,
)
from subscriptions.shared.tools.sns import SubscriptionService

log = structlog.get_logger()

INVALID_ADDRESS_REASON = "invalid email address"
NOTHING_TO_SUBSCRIBE = "No email addresses provided; nothing to subscribe"


def _failure_reason(error: SubscriptionOperationError) -> str:
    if error.is_invalid_address:
        return INVALID_ADDRESS_REASON
    return error.error_message or error.error_code or "Unknown error"


def _failed_suffix(outcome: ReconciliationOutcome) -> str:
    if not outcome.failures:
        return ""
    details = "; ".join(f"{f.address}: {f.reason}" for f in outcome.failures)
    return f" (failed: {details})"


class SubscriptionReconciler:
    """Reconciles desired email subscriptions against SNS."""

    def __init__(self, service: SubscriptionService) -> None:
        self.service = service

    def reconcile(self, request: ReconciliationRequest) -> ReconciliationOutcome:
        """
        Dispatch on the request's lifecycle action.

        Raises:
            ReconciliationFailedError: Create/Update where no address subscribed
            UnsupportedLifecycleActionError: Unknown RequestType
        """
        log.info(
            "reconciliation_started",
            request_type=request.request_type,
            topic_arn=request.topic_arn,
            email_count=len(request.emails),
        )

        if request.action in (LifecycleAction.CREATE, LifecycleAction.UPDATE):
            outcome = self._subscribe_all(request)
        elif request.action == LifecycleAction.DELETE:
            outcome = self._unsubscribe_all(request)
        else:
            raise UnsupportedLifecycleActionError(request.request_type)

        log.info(
            "reconciliation_completed",
            request_type=request.request_type,
            topic_arn=request.topic_arn,
            succeeded=len(outcome.succeeded_addresses),
            failed=len(outcome.failures),
            skipped=len(outcome.skipped_addresses),
        )
        return outcome

    def _subscribe_all(self, request: ReconciliationRequest) -> ReconciliationOutcome:
        outcome = ReconciliationOutcome(action=request.action)

        if not request.emails:
            outcome.summary = NOTHING_TO_SUBSCRIBE
            return outcome

        for address in request.emails:
            try:
                self.service.subscribe(request.topic_arn, address)
            except SubscriptionOperationError as e:
                outcome.failures.append(AddressFailure(address=address, reason=_failure_reason(e)))
                continue
            outcome.succeeded_addresses.append(address)

        if not outcome.succeeded_addresses:
            log.error(
                "all_subscriptions_failed",
                topic_arn=request.topic_arn,
                failed=outcome.failed_addresses,
            )
            raise ReconciliationFailedError(topic_arn=request.topic_arn, failures=outcome.failures)

        outcome.summary = (
            f"Email subscriptions processed: {len(outcome.succeeded_addresses)} succeeded, "
            f"{len(outcome.failures)} failed{_failed_suffix(outcome)}"
        )
        return outcome

    def _unsubscribe_all(self, request: ReconciliationRequest) -> ReconciliationOutcome:
        outcome = ReconciliationOutcome(action=request.action)

        for address in request.emails:
            try:
                subscription_arn = self.service.find_subscription_arn(request.topic_arn, address)
                if subscription_arn is None:
                    log.info(
                        "subscription_already_absent",
                        topic_arn=request.topic_arn,
                        email=address,
                    )
                    outcome.skipped_addresses.append(address)
                    continue
                self.service.unsubscribe(subscription_arn, address=address)
            except SubscriptionOperationError as e:
                outcome.failures.append(AddressFailure(address=address, reason=_failure_reason(e)))
                continue
            outcome.succeeded_addresses.append(address)

        outcome.summary = (
            f"Email subscriptions cleanup completed: {len(outcome.succeeded_addresses)} removed, "
            f"{len(outcome.failures)} failed, {len(outcome.skipped_addresses)} already absent"
            f"{_failed_suffix(outcome)}"
        )
        return outcome

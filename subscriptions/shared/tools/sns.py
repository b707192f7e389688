"""
SNS Tools

Email subscription operations against an SNS topic: subscribe,
unsubscribe, and lookup of an existing subscription by endpoint.
"""

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
import structlog

from subscriptions.shared.config import get_settings
from subscriptions.shared.exceptions import SubscriptionOperationError

log = structlog.get_logger()

EMAIL_PROTOCOL = "email"

# SubscriptionArn reported until the recipient clicks the confirmation link
PENDING_CONFIRMATION = "PendingConfirmation"


def _get_client():
    """Get SNS client."""
    settings = get_settings()
    return boto3.client("sns", **settings.sns_config)


def _error_details(error: ClientError | BotoCoreError) -> tuple[str | None, str]:
    if isinstance(error, BotoCoreError):
        return None, str(error)
    details = error.response.get("Error", {})
    return details.get("Code", "Unknown"), details.get("Message", "")


class SubscriptionService:
    """
    Email subscriptions on SNS topics.

    The boto3 client is injected so tests can substitute a fake; when
    omitted one is built from settings.
    """

    def __init__(self, client: Any | None = None) -> None:
        self._client = client if client is not None else _get_client()

    def subscribe(self, topic_arn: str, address: str) -> str:
        """
        Subscribe an email address to a topic.

        SNS treats a repeated subscribe of the same endpoint as a no-op,
        so this is safe to call for already-subscribed addresses.

        Returns:
            SubscriptionArn (usually "pending confirmation" for email)

        Raises:
            SubscriptionOperationError: If SNS rejects the request
        """
        log.info("subscribing_email", topic_arn=topic_arn, email=address)

        try:
            response = self._client.subscribe(
                TopicArn=topic_arn,
                Protocol=EMAIL_PROTOCOL,
                Endpoint=address,
            )
        except (ClientError, BotoCoreError) as e:
            error_code, error_message = _error_details(e)
            log.warning(
                "email_subscribe_failed",
                topic_arn=topic_arn,
                email=address,
                error_code=error_code,
                error_message=error_message,
            )
            raise SubscriptionOperationError(
                operation="subscribe",
                address=address,
                error_code=error_code,
                error_message=error_message,
            ) from e

        subscription_arn = response.get("SubscriptionArn", "")
        log.info(
            "email_subscribed",
            topic_arn=topic_arn,
            email=address,
            subscription_arn=subscription_arn,
        )
        return subscription_arn

    def unsubscribe(self, subscription_arn: str, *, address: str | None = None) -> None:
        """
        Remove a confirmed subscription.

        Raises:
            SubscriptionOperationError: If SNS rejects the request
        """
        try:
            self._client.unsubscribe(SubscriptionArn=subscription_arn)
        except (ClientError, BotoCoreError) as e:
            error_code, error_message = _error_details(e)
            log.warning(
                "email_unsubscribe_failed",
                subscription_arn=subscription_arn,
                email=address,
                error_code=error_code,
                error_message=error_message,
            )
            raise SubscriptionOperationError(
                operation="unsubscribe",
                address=address,
                error_code=error_code,
                error_message=error_message,
            ) from e

        log.info("email_unsubscribed", subscription_arn=subscription_arn, email=address)

    def find_subscription_arn(self, topic_arn: str, address: str) -> str | None:
        """
        Find the confirmed email subscription of an address on a topic.

        Walks every page of ListSubscriptionsByTopic. The endpoint match
        is exact (case-sensitive). Subscriptions still pending
        confirmation have no usable ARN and are skipped; SNS expires them
        on its own.

        Args:
            topic_arn: Topic to scan
            address: Email endpoint to look for

        Returns:
            SubscriptionArn, or None if no confirmed subscription exists

        Raises:
            SubscriptionOperationError: If listing fails
        """
        paginator = self._client.get_paginator("list_subscriptions_by_topic")
        scanned = 0

        try:
            for page in paginator.paginate(TopicArn=topic_arn):
                for subscription in page.get("Subscriptions", []):
                    scanned += 1
                    if subscription.get("Protocol") != EMAIL_PROTOCOL:
                        continue
                    if subscription.get("Endpoint") != address:
                        continue

                    subscription_arn = subscription.get("SubscriptionArn", "")
                    if not _is_confirmed(subscription_arn):
                        log.debug(
                            "skipping_unconfirmed_subscription",
                            topic_arn=topic_arn,
                            email=address,
                            subscription_arn=subscription_arn,
                        )
                        continue

                    log.debug(
                        "subscription_found",
                        topic_arn=topic_arn,
                        email=address,
                        subscription_arn=subscription_arn,
                        scanned=scanned,
                    )
                    return subscription_arn
        except (ClientError, BotoCoreError) as e:
            error_code, error_message = _error_details(e)
            raise SubscriptionOperationError(
                operation="list",
                address=address,
                error_code=error_code,
                error_message=error_message,
            ) from e

        log.debug(
            "subscription_not_found",
            topic_arn=topic_arn,
            email=address,
            scanned=scanned,
        )
        return None


def _is_confirmed(subscription_arn: str) -> bool:
    """Only real ARNs can be unsubscribed."""
    return subscription_arn != PENDING_CONFIRMATION and subscription_arn.startswith("arn:")

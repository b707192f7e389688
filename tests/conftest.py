"""
Pytest Configuration and Shared Fixtures

Provides moto AWS mocking, sample custom resource events, and fakes
for the SNS client and the callback HTTP session.
"""

import os
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# Set test environment before importing application modules
os.environ["SUBSCRIPTIONS_AWS_REGION"] = "us-east-1"
os.environ["SUBSCRIPTIONS_CALLBACK_TIMEOUT_SECONDS"] = "60"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"


# --- AWS Mocking Fixtures ---


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    return {
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "region_name": "us-east-1",
    }


@pytest.fixture
def mock_sns(aws_credentials):
    """Create a mocked SNS client with one topic."""
    with mock_aws():
        sns = boto3.client("sns", **aws_credentials)
        response = sns.create_topic(Name="test-notifications")
        yield {"client": sns, "topic_arn": response["TopicArn"]}


@pytest.fixture
def fake_sns_client() -> MagicMock:
    """SNS client fake; subscribe succeeds and topics are empty by default."""
    client = MagicMock()
    client.subscribe.return_value = {"SubscriptionArn": "pending confirmation"}
    client.unsubscribe.return_value = {}
    paginator = MagicMock()
    paginator.paginate.return_value = [{"Subscriptions": []}]
    client.get_paginator.return_value = paginator
    return client


# --- Callback Fixtures ---


@pytest.fixture
def response_url() -> str:
    """Pre-signed style CloudFormation callback URL."""
    return (
        "https://cloudformation-custom-resource-response-useast1.s3.amazonaws.com/"
        "arn%3Aaws%3Acloudformation%3Aus-east-1%3A123456789012%3Astack/demo/abc%7CEmailSubs%7Creq-1"
        "?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Signature=deadbeef"
    )


@pytest.fixture
def fake_session() -> MagicMock:
    """requests.Session fake whose PUT returns 200."""
    session = MagicMock()
    response = MagicMock()
    response.status_code = 200
    response.reason = "OK"
    response.text = ""
    session.put.return_value = response
    return session


# --- Event Fixtures ---


@pytest.fixture
def topic_arn() -> str:
    """Sample topic ARN."""
    return "arn:aws:sns:us-east-1:123456789012:test-notifications"


@pytest.fixture
def make_event(response_url: str, topic_arn: str):
    """Factory for custom resource events."""

    def _make_event(
        request_type: str = "Create",
        email_list: Any = ("ok@x.com",),
        **overrides: Any,
    ) -> dict[str, Any]:
        event = {
            "RequestType": request_type,
            "ResponseURL": response_url,
            "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/demo/abc",
            "RequestId": "req-1",
            "LogicalResourceId": "EmailSubscriptions",
            "ResourceType": "Custom::EmailSubscriptions",
            "ResourceProperties": {
                "ServiceToken": "arn:aws:lambda:us-east-1:123456789012:function:email-subs",
                "TopicArn": topic_arn,
                "EmailList": list(email_list) if isinstance(email_list, tuple) else email_list,
            },
        }
        event.update(overrides)
        return event

    return _make_event

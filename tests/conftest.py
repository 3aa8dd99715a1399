"""Shared fixtures for the setup function and the lw_common layer."""

import json
import logging
import os
from dataclasses import dataclass
from unittest.mock import MagicMock

# Tracer is created at import time, keep X-Ray out of unit tests
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

import pytest
import urllib3

import apilib
import cfnlib
import telemetrylib

HOST = "acct.lacework.net"
CHANNEL_NAME = "sec-hub-channel"
EVENT_BUS_ARN = "arn:aws:events:us-east-1:123456789012:event-bus/x"


def make_response(status, body=None):
    """Build a real urllib3 response with an optional JSON body."""
    data = b"" if body is None else json.dumps(body).encode("utf-8")
    return urllib3.HTTPResponse(body=data, status=status, preload_content=True)


def sent_json(call):
    """Decode the JSON body of a recorded ``pool.request`` call."""
    return json.loads(call.kwargs["body"])


@dataclass
class FakeLambdaContext:
    function_name: str = "lacework-security-hub-setup"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:setup"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"
    log_stream_name: str = "2026/10/19/[$LATEST]abcdef"


@pytest.fixture()
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture()
def test_logger():
    """Standard library logger so caplog can capture component output."""
    log = logging.getLogger("lacework-setup-test")
    log.setLevel(logging.DEBUG)
    return log


@pytest.fixture()
def lacework_pool(monkeypatch):
    """Replace the Lacework API pool; set ``side_effect`` to the responses in call order."""
    pool = MagicMock()
    monkeypatch.setattr(apilib, "http", pool)
    return pool


@pytest.fixture()
def honeycomb_pool(monkeypatch):
    pool = MagicMock()
    pool.request.return_value = make_response(200)
    monkeypatch.setattr(telemetrylib, "http", pool)
    return pool


@pytest.fixture()
def cfn_pool(monkeypatch):
    pool = MagicMock()
    pool.request.return_value = make_response(200)
    monkeypatch.setattr(cfnlib, "http", pool)
    return pool


@pytest.fixture()
def setup_env(monkeypatch):
    """Complete environment for a create run."""
    monkeypatch.setenv("lacework_url", HOST)
    monkeypatch.setenv("lacework_sub_account_name", "child")
    monkeypatch.setenv("lacework_access_key_id", "KEY_ID")
    monkeypatch.setenv("lacework_secret_key", "_secret")
    monkeypatch.setenv("event_bus_arn", EVENT_BUS_ARN)
    monkeypatch.setenv("alert_channel_name", CHANNEL_NAME)


def cfn_event(request_type, physical_resource_id=None):
    event = {
        "RequestType": request_type,
        "ServiceToken": "arn:aws:lambda:us-east-1:123456789012:function:setup",
        "ResponseURL": "https://cloudformation-custom-resource-response-useast1.s3.amazonaws.com/signed",
        "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/sec-hub/guid",
        "RequestId": "request-1",
        "LogicalResourceId": "LaceworkSetup",
        "ResourceType": "Custom::LaceworkSetup",
        "ResourceProperties": {},
    }
    if physical_resource_id:
        event["PhysicalResourceId"] = physical_resource_id
    return event

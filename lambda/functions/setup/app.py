from __future__ import annotations
from dataclasses import dataclass
from os import environ
from typing import Any

from aws_lambda_powertools.utilities.data_classes import CloudFormationCustomResourceEvent
from aws_lambda_powertools.utilities.typing import LambdaContext
from alertlib import (
    ALERT_CHANNEL_SEARCH,
    ALERT_RULE_SEARCH,
    create_alert_channel,
    create_alert_rule,
    delete_alert_channel,
    delete_alert_rule,
    search_alert_channels,
    search_resource,
)
from apilib import LaceworkClient, LaceworkError
from cfnlib import FAILED, SUCCESS, send_response
from loglib import logger, tracer, log_event
from telemetrylib import account_from_host, send_honeycomb_event
from tokenlib import create_access_token

# Settings attribute -> environment variable
ENV_VARS: dict[str, str] = {
    "host": "lacework_url",
    "sub_account_name": "lacework_sub_account_name",
    "access_key_id": "lacework_access_key_id",
    "secret_key": "lacework_secret_key",
    "event_bus_arn": "event_bus_arn",
    "alert_channel_name": "alert_channel_name",
}

REQUIRED_FOR_CREATE: tuple[str, ...] = ("host", "access_key_id", "secret_key", "event_bus_arn")
REQUIRED_FOR_DELETE: tuple[str, ...] = ("host", "access_key_id", "secret_key")


class ConfigurationError(Exception):
    """Required settings are missing; raised before any Lacework call."""

    def __init__(self, missing: list[str]):
        super().__init__(
            "unable to run setup due to missing required environment variables: " + ", ".join(missing)
        )
        self.missing = missing


@dataclass
class SetupSettings:
    """
    Per-invocation configuration, read from the function environment.
    """
    host: str = ""
    sub_account_name: str = ""
    access_key_id: str = ""
    secret_key: str = ""
    event_bus_arn: str = ""
    alert_channel_name: str = ""

    @property
    def account(self) -> str:
        return account_from_host(self.host)

    def missing(self, required: tuple[str, ...]) -> list[str]:
        return [ENV_VARS[name] for name in required if not getattr(self, name)]


def load_settings() -> SetupSettings:
    return SetupSettings(**{name: environ.get(var, "") for name, var in ENV_VARS.items()})


@logger.inject_lambda_context(log_event=log_event)
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """
    CloudFormation custom resource entrypoint.

    - Create provisions the alert channel and alert rule
    - Delete removes both
    - Any other request type is acknowledged without changes

    The outcome is always reported to the ResponseURL in the event.
    """
    cfn_event = CloudFormationCustomResourceEvent(event)
    physical_resource_id = cfn_event.get("PhysicalResourceId") or context.log_stream_name
    status, reason = SUCCESS, ""
    try:
        request_type = cfn_event.request_type
        logger.info(f"CloudFormation event received: {request_type} {cfn_event.logical_resource_id}")
        if request_type == "Create":
            create(load_settings())
        elif request_type == "Delete":
            delete(load_settings())
        else:
            logger.warning(f"CloudFormation event not supported: {request_type}")
    except Exception as e:
        logger.exception(f"Setup failed: {e}")
        status, reason = FAILED, str(e)
    return send_response(event, status, reason, physical_resource_id)


@tracer.capture_method
def create(settings: SetupSettings, log: Any = logger) -> None:
    """
    Creates the alert channel and its alert rule unless the channel already exists.

    Args:
        settings (SetupSettings): Invocation configuration.
        log: Logger for this run.

    Raises:
        ConfigurationError: A required setting is missing.
        LaceworkError: Token issuance or resource creation failed.
    """
    send_honeycomb_event(settings.account, "create started", settings.sub_account_name, log=log)
    validate_settings(settings, REQUIRED_FOR_CREATE, log)

    client = LaceworkClient(settings.host, settings.sub_account_name, log=log)
    log.info("Getting access token.")
    client.token = create_access_token(client, settings.access_key_id, settings.secret_key).token

    try:
        intg_guid = search_alert_channels(client, settings.alert_channel_name)
    except LaceworkError as e:
        # Creation goes ahead without confirmation that the channel is absent
        log.warning(f"Unable to search: {e}")
        intg_guid = ""

    if intg_guid:
        log.info("Alert Channel already exists.")
    else:
        log.info("Creating Alert Channel.")
        try:
            intg_guid = create_alert_channel(client, settings.alert_channel_name, settings.event_bus_arn)
        except LaceworkError as e:
            log.error(f"Failed creating alert channel: {e}")
            raise
        log.info("Creating Alert Rule.")
        try:
            create_alert_rule(client, settings.alert_channel_name, intg_guid)
        except LaceworkError as e:
            log.error(f"Failed creating alert rule: {e}")
            raise

    send_honeycomb_event(settings.account, "create completed", settings.sub_account_name, log=log)


@tracer.capture_method
def delete(settings: SetupSettings, log: Any = logger) -> None:
    """
    Removes the alert channel and alert rule. Never fails the stack deletion.

    Args:
        settings (SetupSettings): Invocation configuration.
        log: Logger for this run.
    """
    send_honeycomb_event(settings.account, "delete started", settings.sub_account_name, log=log)

    missing = settings.missing(REQUIRED_FOR_DELETE)
    if missing:
        log.warning(f"Skipping alert channel and alert rule deletion, not set: {', '.join(missing)}")
    else:
        client = LaceworkClient(settings.host, settings.sub_account_name, log=log)
        try:
            client.token = create_access_token(client, settings.access_key_id, settings.secret_key).token
        except LaceworkError:
            log.warning("Did not get access token in order to delete alert channel and alert rule.")
        else:
            delete_resources(client, settings.alert_channel_name, log)

    send_honeycomb_event(settings.account, "delete completed", settings.sub_account_name, log=log)


def delete_resources(client: LaceworkClient, name: str, log: Any = logger) -> None:
    """Deletes the channel, then the rule; a failure on one does not stop the other."""
    for kind, remove in ((ALERT_CHANNEL_SEARCH, delete_alert_channel), (ALERT_RULE_SEARCH, delete_alert_rule)):
        try:
            identifier = search_resource(client, kind, name)
        except LaceworkError as e:
            log.warning(f"Unable to search: {e}")
            continue
        if not identifier:
            log.info(f"No {kind.label} named {name} to delete.")
            continue
        try:
            remove(client, identifier)
        except LaceworkError as e:
            log.error(f"Failed deleting {kind.label} {identifier}: {e}")


def validate_settings(settings: SetupSettings, required: tuple[str, ...], log: Any = logger) -> None:
    if not settings.sub_account_name:
        log.warning(f"{ENV_VARS['sub_account_name']} was not set.")
    missing = settings.missing(required)
    for var in missing:
        log.error(f"{var} was not set.")
    if missing:
        raise ConfigurationError(missing)

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any

import jmespath
from apilib import LaceworkClient, LaceworkDecodeError
from loglib import tracer

ALERT_CHANNELS_PATH: str = "/api/v2/AlertChannels"
ALERT_RULES_PATH: str = "/api/v2/AlertRules"

ALERT_CHANNEL_TYPE: str = "CloudwatchEb"
ISSUE_GROUPING: str = "Events"
ALERT_RULE_TYPE: str = "Event"
ALERT_RULE_DESCRIPTION: str = "Alert rule for Lacework AWS Security Hub"
ALL_SEVERITIES: list[int] = [1, 2, 3, 4, 5]


@dataclass(frozen=True)
class SearchKind:
    """
    Describes how to look up one Lacework resource type by name.

    Attributes:
        label (str): Human readable name used in logs and errors.
        search_path (str): Search endpoint for the resource type.
        name_field (str): Field compared with the name in the filter expression.
        id_field (str): Identifier returned by the search.
        no_content_is_empty (bool): Treat HTTP 204 as "nothing found".
    """
    label: str
    search_path: str
    name_field: str
    id_field: str
    no_content_is_empty: bool = False

    def payload(self, name: str) -> dict:
        return {
            "filters": [{"expression": "eq", "field": self.name_field, "value": name}],
            "returns": [self.id_field],
        }


ALERT_CHANNEL_SEARCH = SearchKind(
    label="alert channel",
    search_path=f"{ALERT_CHANNELS_PATH}/search",
    name_field="name",
    id_field="intgGuid",
    no_content_is_empty=True,
)

ALERT_RULE_SEARCH = SearchKind(
    label="alert rule",
    search_path=f"{ALERT_RULES_PATH}/search",
    name_field="filters.name",
    id_field="mcGuid",
)


@dataclass
class AlertChannelData:
    issueGrouping: str
    eventBusArn: str


@dataclass
class AlertChannel:
    """
    EventBridge backed alert channel as sent to POST /api/v2/AlertChannels.
    """
    name: str
    data: AlertChannelData
    type: str = ALERT_CHANNEL_TYPE
    enabled: int = 1

    @classmethod
    def for_event_bus(cls, name: str, event_bus_arn: str) -> AlertChannel:
        return cls(name=name, data=AlertChannelData(issueGrouping=ISSUE_GROUPING, eventBusArn=event_bus_arn))

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "enabled": self.enabled,
            "data": asdict(self.data),
        }


@dataclass
class AlertRuleFilters:
    name: str
    description: str = ALERT_RULE_DESCRIPTION
    enabled: int = 1
    resourceGroups: list[str] = field(default_factory=list)
    eventCategory: list[str] = field(default_factory=list)
    severity: list[int] = field(default_factory=lambda: list(ALL_SEVERITIES))


@dataclass
class AlertRule:
    """
    Alert rule routing every severity and category to the given channels.
    """
    filters: AlertRuleFilters
    intgGuidList: list[str]
    type: str = ALERT_RULE_TYPE

    @classmethod
    def for_channel(cls, name: str, intg_guid: str) -> AlertRule:
        return cls(filters=AlertRuleFilters(name=name), intgGuidList=[intg_guid])

    def to_payload(self) -> dict:
        return asdict(self)


@tracer.capture_method
def search_resource(client: LaceworkClient, kind: SearchKind, name: str) -> str:
    """
    Searches for a resource by name and returns its identifier.

    Args:
        client (LaceworkClient): Authorised client.
        kind (SearchKind): Which resource type to search.
        name (str): Exact name to match.

    Returns:
        str: Identifier of the first match, or an empty string when nothing matched.

    Raises:
        LaceworkError: When the search cannot be sent, fails or returns an unreadable body.
    """
    response = client.post(kind.search_path, kind.payload(name))
    if response.status == 204 and kind.no_content_is_empty:
        client.log.info(f"No {kind.label} found for name: {name}")
        return ""
    client.expect_status(response, 200, "sending search request")

    body = client.decode(response)
    matches = body.get("data") or []
    if not isinstance(matches, list):
        raise LaceworkDecodeError(f"Unexpected search response data: {matches}")
    if not matches:
        client.log.warning(f"No results returned for {kind.label}: {name}")
        return ""

    identifier = jmes_search(body, f"data[0].{kind.id_field}")
    if not identifier:
        raise LaceworkDecodeError(f"Search result for {kind.label} {name} has no {kind.id_field}")
    client.log.info(f"Found {kind.label} {name}: {identifier}")
    return identifier


def search_alert_channels(client: LaceworkClient, name: str) -> str:
    return search_resource(client, ALERT_CHANNEL_SEARCH, name)


def search_alert_rules(client: LaceworkClient, name: str) -> str:
    return search_resource(client, ALERT_RULE_SEARCH, name)


@tracer.capture_method
def create_alert_channel(client: LaceworkClient, name: str, event_bus_arn: str) -> str:
    """
    Creates an EventBridge alert channel.

    Args:
        client (LaceworkClient): Authorised client.
        name (str): Channel name.
        event_bus_arn (str): ARN of the bus Lacework publishes to.

    Returns:
        str: The intgGuid of the new channel.
    """
    channel = AlertChannel.for_event_bus(name, event_bus_arn)
    response = client.post(ALERT_CHANNELS_PATH, channel.to_payload())
    client.expect_status(response, 201, "sending alert channel request")
    intg_guid = jmes_search(client.decode(response), "data.intgGuid")
    if not intg_guid:
        raise LaceworkDecodeError(f"Alert channel response for {name} has no intgGuid")
    client.log.info(f"Created alert channel {name}: {intg_guid}")
    return intg_guid


@tracer.capture_method
def create_alert_rule(client: LaceworkClient, name: str, intg_guid: str) -> None:
    """
    Creates the alert rule that routes all severities to one channel.

    Args:
        client (LaceworkClient): Authorised client.
        name (str): Rule name, shared with the channel.
        intg_guid (str): Channel the rule routes to.
    """
    rule = AlertRule.for_channel(name, intg_guid)
    response = client.post(ALERT_RULES_PATH, rule.to_payload())
    client.expect_status(response, 201, "sending alert rule request")
    client.log.info(f"Created alert rule {name} for channel {intg_guid}")


@tracer.capture_method
def delete_alert_channel(client: LaceworkClient, intg_guid: str) -> None:
    response = client.delete(f"{ALERT_CHANNELS_PATH}/{intg_guid}")
    client.expect_status(response, 204, "sending delete alert channel request")
    client.log.info(f"Deleted alert channel: {intg_guid}")


@tracer.capture_method
def delete_alert_rule(client: LaceworkClient, mc_guid: str) -> None:
    response = client.delete(f"{ALERT_RULES_PATH}/{mc_guid}")
    client.expect_status(response, 204, "sending delete alert rule request")
    client.log.info(f"Deleted alert rule: {mc_guid}")


def jmes_search(document: dict[str, Any], pattern: str) -> Any:
    """Wrapper around `jmespath.search` returning None for empty results."""
    result = jmespath.search(pattern, document)
    return result if result not in ("", None) else None

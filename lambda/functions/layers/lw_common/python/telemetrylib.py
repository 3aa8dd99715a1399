from __future__ import annotations
import json
from os import environ
from typing import Any, Optional

import urllib3
from loglib import logger

# Placeholders are substituted when the function package is built
honeycomb_dataset: str = environ.get('honeycomb_dataset', '$DATASET')
honeycomb_key: str = environ.get('honeycomb_key', '$HONEY_KEY')
build_version: str = environ.get('build_version', '$BUILD')

HONEYCOMB_URL: str = "https://api.honeycomb.io/1/events/{dataset}"
TECH_PARTNER: str = "AWS"
INTEGRATION_NAME: str = "lacework-aws-security-hub-cloudformation"
SERVICE: str = "AWS Security Hub"
INSTALL_METHOD: str = "cloudformation"
FUNCTION: str = "setup"

http = urllib3.PoolManager()


def account_from_host(host: Optional[str]) -> str:
    """Returns the account part of a Lacework host, e.g. ``acct`` for ``acct.lacework.net``."""
    return (host or "").split(".")[0]


def build_event(account: str, event: str, sub_account_name: Optional[str], event_data: str = "{}") -> dict:
    return {
        "account": account,
        "sub-account": sub_account_name or "",
        "tech-partner": TECH_PARTNER,
        "integration-name": INTEGRATION_NAME,
        "version": build_version,
        "service": SERVICE,
        "install-method": INSTALL_METHOD,
        "function": FUNCTION,
        "event": event,
        "event-data": event_data or "{}",
    }


def send_honeycomb_event(
    account: str,
    event: str,
    sub_account_name: Optional[str] = None,
    event_data: str = "{}",
    pool: Any = None,
    log: Any = logger,
) -> Optional[int]:
    """
    Records a lifecycle event in Honeycomb. Best effort only.

    Args:
        account (str): Lacework account name.
        event (str): Event label, e.g. "create started".
        sub_account_name (str): Lacework sub-account, if any.
        event_data (str): JSON encoded event details.

    Returns:
        int: HTTP status from Honeycomb, or None if the event could not be sent.
    """
    try:
        payload = build_event(account, event, sub_account_name, event_data)
        response = (pool if pool is not None else http).request(
            "POST",
            HONEYCOMB_URL.format(dataset=honeycomb_dataset),
            body=json.dumps(payload).encode("utf-8"),
            headers={"X-Honeycomb-Team": honeycomb_key, "content-type": "application/json"},
        )
        if response.status >= 300:
            log.warning(f"Unable to send event to Honeycomb: {response.status}")
        else:
            log.info(f"Sent event to Honeycomb: {event} {response.status}")
        return response.status
    except Exception as e:
        log.warning(f"Unable to send event to Honeycomb: {e}")
        return None

import json
from typing import Any, Optional

import urllib3
from loglib import logger

SUCCESS: str = "SUCCESS"
FAILED: str = "FAILED"

http = urllib3.PoolManager()


def build_response(event: dict, status: str, reason: str, physical_resource_id: str, data: Optional[dict] = None) -> dict:
    return {
        "Status": status,
        "Reason": reason,
        "PhysicalResourceId": physical_resource_id,
        "StackId": event["StackId"],
        "RequestId": event["RequestId"],
        "LogicalResourceId": event["LogicalResourceId"],
        "Data": data or {},
    }


def send_response(
    event: dict,
    status: str,
    reason: str,
    physical_resource_id: str,
    data: Optional[dict] = None,
    pool: Any = None,
    log: Any = logger,
) -> dict:
    """
    Reports the outcome of a custom resource request to CloudFormation.

    The body is PUT to the pre-signed ResponseURL from the event. Delivery
    failures are logged and not raised.

    Returns:
        dict: The response body that was sent.
    """
    response_body = build_response(event, status, reason, physical_resource_id, data)
    encoded = json.dumps(response_body).encode("utf-8")
    try:
        response = (pool if pool is not None else http).request(
            "PUT", event["ResponseURL"], body=encoded, headers={"Content-Type": ""}
        )
        log.info(f"Sent CloudFormation response: {status} {response.status}")
    except Exception as e:
        log.error(f"Failed to send CloudFormation response: {e}")
    return response_body

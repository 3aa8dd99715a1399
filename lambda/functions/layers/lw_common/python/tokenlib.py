from __future__ import annotations
from dataclasses import dataclass

from apilib import JSON_CONTENT_TYPE, LaceworkClient, LaceworkDecodeError
from loglib import tracer

ACCESS_TOKEN_PATH: str = "/api/v2/access/tokens"
ACCESS_TOKEN_EXPIRY_SECONDS: int = 86400


@dataclass
class AccessToken:
    """
    Short-lived Lacework API token, requested once per invocation.
    """
    token: str
    expires_at: str


@tracer.capture_method(capture_response=False)
def create_access_token(client: LaceworkClient, access_key_id: str, secret_key: str) -> AccessToken:
    """
    Exchanges an access key for an API token.

    The secret travels in the X-LW-UAKS header, never in the body.

    Args:
        client (LaceworkClient): Client bound to the Lacework host.
        access_key_id (str): Lacework access key id.
        secret_key (str): Secret for the access key.

    Returns:
        AccessToken: The issued token and its expiry.

    Raises:
        LaceworkError: On transport failure, a status other than 201 or an unreadable body.
    """
    payload = {"keyId": access_key_id, "expiryTime": ACCESS_TOKEN_EXPIRY_SECONDS}
    headers = {"X-LW-UAKS": secret_key, "content-type": JSON_CONTENT_TYPE}
    try:
        response = client.post(ACCESS_TOKEN_PATH, payload, headers=headers, log_response=False)
        client.expect_status(response, 201, "to get access token")
        body = client.decode(response)
        if not body.get("token"):
            raise LaceworkDecodeError(f"Access token missing from response: {list(body)}")
        token = AccessToken(token=body["token"], expires_at=body.get("expiresAt", ""))
    except Exception as e:
        client.log.error(f"Failed to create access token: {e}")
        raise
    client.log.info(f"Access token issued, expires at {token.expires_at}")
    return token

from __future__ import annotations
import json
from typing import Any, Optional

import urllib3
from loglib import logger

# Shared connection pool for the Lacework management API
http = urllib3.PoolManager()

JSON_CONTENT_TYPE: str = "application/json"


class LaceworkError(Exception):
    """Base class for failures talking to the Lacework API."""


class LaceworkRequestError(LaceworkError):
    """The request could not be built or sent."""


class LaceworkStatusError(LaceworkError):
    """The API answered with a status other than the one expected."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class LaceworkDecodeError(LaceworkError):
    """The response body was not the JSON document we expected."""


class LaceworkClient:
    """
    Thin wrapper around urllib3 for the Lacework v2 API.

    Args:
        host (str): Lacework account host, e.g. ``acct.lacework.net``.
        sub_account_name (str): Optional sub-account sent as ``Account-Name``.
        token (str): Access token sent as ``Authorization``.
        pool: Object exposing ``request(method, url, body=, headers=)``; defaults to the module pool.
        log: Logger used for request/response logging; defaults to the layer logger.

    Status codes are never interpreted here, callers use ``expect_status``.
    """

    def __init__(
        self,
        host: str,
        sub_account_name: Optional[str] = None,
        token: Optional[str] = None,
        pool: Any = None,
        log: Any = logger,
    ):
        self.host = host
        self.sub_account_name = sub_account_name
        self.token = token
        self.pool = pool if pool is not None else http
        self.log = log

    def url(self, path: str) -> str:
        return f"https://{self.host}{path}"

    def headers(self) -> dict[str, str]:
        headers = {"content-type": JSON_CONTENT_TYPE}
        if self.token:
            headers["Authorization"] = self.token
        if self.sub_account_name:
            headers["Account-Name"] = self.sub_account_name
        return headers

    def post(
        self,
        path: str,
        payload: dict,
        headers: Optional[dict[str, str]] = None,
        log_response: bool = True,
    ) -> urllib3.BaseHTTPResponse:
        """
        Sends a JSON POST request.

        Args:
            path (str): API path relative to the host.
            payload (dict): Body, serialised as JSON.
            headers (dict): Replaces the default headers when given (token issuance).
            log_response (bool): Log the response body; off when it carries a credential.

        Returns:
            The raw urllib3 response.
        """
        body = json.dumps(payload).encode("utf-8")
        return self.request("POST", path, body, headers if headers is not None else self.headers(), log_response)

    def delete(self, path: str) -> urllib3.BaseHTTPResponse:
        return self.request("DELETE", path, None, self.headers())

    def request(
        self,
        method: str,
        path: str,
        body: Optional[bytes],
        headers: dict[str, str],
        log_response: bool = True,
    ) -> urllib3.BaseHTTPResponse:
        url = self.url(path)
        # Headers carry the secret key or the token, so only the body is logged
        self.log.info(f"Sending request: {method} {url} {body.decode('utf-8') if body else ''}")
        try:
            response = self.pool.request(method, url, body=body, headers=headers)
        except urllib3.exceptions.HTTPError as e:
            self.log.error(f"Error sending API {method.lower()} request to {url}: {e}")
            raise LaceworkRequestError(f"Error sending API {method.lower()} request to {url}: {e}") from e
        if log_response:
            self.log.info(f"Received response: {response.status} {(response.data or b'').decode('utf-8', errors='replace')}")
        else:
            self.log.info(f"Received response: {response.status}")
        return response

    def decode(self, response: urllib3.BaseHTTPResponse) -> dict:
        """
        Parses a JSON response body.

        Raises:
            LaceworkDecodeError: If the body is empty, not JSON or not an object.
        """
        try:
            document = json.loads(response.data or b"")
        except ValueError as e:
            self.log.error(f"Unable to get response body: {e}")
            raise LaceworkDecodeError(f"Unable to get response body: {e}") from e
        if not isinstance(document, dict):
            self.log.error(f"Unexpected response body: {document}")
            raise LaceworkDecodeError(f"Unexpected response body: {document}")
        return document

    def expect_status(self, response: urllib3.BaseHTTPResponse, expected: int, action: str) -> None:
        if response.status != expected:
            message = f"Failed {action}. Response status is {response.status}"
            self.log.error(message)
            raise LaceworkStatusError(message, response.status)

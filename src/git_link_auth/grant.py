"""Client for the grant endpoint that issues tokens for linked repositories."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from .log import mark_secret

logger = logging.getLogger(__name__)

USER_AGENT = "git-link-auth/0.1.0"
REQUEST_TIMEOUT = 20


class GrantError(RuntimeError):
    """Raised when exchanging a repository token for a linked token fails."""


class EmptyTokenError(GrantError):
    """Raised when the grant endpoint responds without a usable token."""


class GrantClient:
    """HTTP client used to exchange the caller's token for a delegated one."""

    endpoint: str
    session: requests.Session

    def __init__(self, endpoint: str, session: Optional[requests.Session] = None) -> None:
        cleaned = (endpoint or "").strip().rstrip("/")
        if not cleaned:
            raise GrantError("Grant endpoint must be provided")
        self.endpoint = cleaned
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        authorization: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Perform an HTTP request against the grant endpoint."""

        url = f"{self.endpoint}{path}"
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "authorization": authorization,
        }

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise GrantError(f"Request to {url} failed: {exc}") from exc

        return response

    def request_linked_token(
        self,
        caller_owner: str,
        caller_repo: str,
        repository_token: str,
        linked_owner: str,
        linked_repo: str,
    ) -> str:
        """Return a token scoped to ``linked_owner/linked_repo``.

        The request is addressed by the caller's own repository and carries the
        caller's token. The returned token is registered as a secret before it
        is handed back.
        """

        response = self._request(
            "POST",
            f"/{caller_owner}/{caller_repo}",
            authorization=repository_token,
            json_body={"owner": linked_owner, "repo": linked_repo},
        )

        if not 200 <= response.status_code < 300:
            raise GrantError(
                f"Failed requesting token for {linked_owner}/{linked_repo}: "
                f"unexpected status {response.status_code}"
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise EmptyTokenError("Unable to decode grant response") from exc

        if not isinstance(payload, dict):
            raise EmptyTokenError("Unexpected grant response format")

        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise EmptyTokenError("Grant response did not include a token")

        mark_secret(token)
        logger.info("Received token for %s/%s", linked_owner, linked_repo)
        return token

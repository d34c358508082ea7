"""Thin HTTP client for the LocumHub API.

Every screen talks to the backend the same way: JSON or multipart body,
bearer token from local storage, non-2xx responses raised as ``ApiError``.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx

from locumhub.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"<ApiError {self.status_code}: {self.message!r}>"


class TokenStore:
    """File-backed bearer token storage."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = os.path.expanduser(path or settings.API_TOKEN_FILE)

    def load(self) -> Optional[str]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                token = fh.read().strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(token)
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class ApiClient:
    """Synchronous wrapper around ``httpx.Client``.

    ``transport`` is passed straight through so callers (and tests) can
    plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token_store: Optional[TokenStore] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.token_store = token_store or TokenStore()
        self._client = httpx.Client(
            base_url=(base_url or settings.API_BASE_URL).rstrip("/"),
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.token_store.load()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        files: Any = None,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty).

        ``files``/``data`` produce a multipart body; otherwise ``json`` is sent.
        """
        if not path.startswith("/"):
            path = "/" + path

        kwargs: dict[str, Any] = {"headers": self._headers(), "params": params}
        if files is not None:
            kwargs["files"] = files
            if data is not None:
                kwargs["data"] = data
        elif data is not None:
            kwargs["data"] = data
        elif json is not None:
            kwargs["json"] = json

        response = self._client.request(method.upper(), path, **kwargs)
        logger.debug("%s %s -> %s", method.upper(), path, response.status_code)

        if not response.is_success:
            body = response.text.strip()
            message = body or f"{response.status_code}: {response.reason_phrase}"
            raise ApiError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    # ── Convenience verbs ───────────────────────────────────────────

    def get(self, path: str, *, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, *, files: Any = None, data: Optional[dict] = None) -> Any:
        return self.request("POST", path, json=json, files=files, data=data)

    def put(self, path: str, json: Any = None, *, files: Any = None, data: Optional[dict] = None) -> Any:
        return self.request("PUT", path, json=json, files=files, data=data)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

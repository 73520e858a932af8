"""
Backend Client

Thin aiohttp wrapper around the project-management REST API:
- Bearer-token authentication (token from config or the session store)
- JSON request and response bodies
- Non-2xx responses and connection failures raised as BackendError
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from taskpilot.core.errors import BackendError
from taskpilot.core.session_store import ACCESS_TOKEN_KEY, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class BackendClient:
    """
    REST client shared by every action module of a session.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session_store: Optional[SessionStore] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the client

        Args:
            base_url: API root, e.g. http://localhost:3000/api
            token: Static bearer token (overrides the stored session token)
            session_store: Where login() keeps the token between runs
            timeout: Total per-request timeout in seconds
        """
        self.base_url = (base_url or "").rstrip("/")
        self._token = token
        self.session_store = session_store
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    # ------------------------------------------------------------------
    # Session / auth
    # ------------------------------------------------------------------
    @property
    def token(self) -> Optional[str]:
        if self._token:
            return self._token
        if self.session_store is not None:
            return self.session_store.get(ACCESS_TOKEN_KEY)
        return None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token
        if self.session_store is None:
            return
        if token:
            self.session_store.set(ACCESS_TOKEN_KEY, token)
        else:
            self.session_store.remove(ACCESS_TOKEN_KEY)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session"""
        if self._session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Returns:
            Decoded body, raw text when the body is not JSON, None when empty

        Raises:
            BackendError: non-2xx status, timeout, or connection failure
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        logger.debug(f"{method} {url} params={query}")

        try:
            session = await self._get_session()
            async with session.request(
                method, url, params=query or None, json=payload, headers=self._headers()
            ) as response:
                text = await response.text()
                body = _decode(text)
                if response.status >= 400:
                    raise BackendError(
                        _error_message(body, response.status),
                        status=response.status,
                        details=body,
                    )
                return body
        except aiohttp.ClientError as e:
            logger.error(f"Backend connection error: {e}")
            raise BackendError(f"Failed to connect to backend: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Backend request timed out: {method} {url}")
            raise BackendError(f"Request timed out after {self.timeout}s") from e

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, payload=payload or {})

    async def patch(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PATCH", path, payload=payload or {})

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


def _decode(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"Request failed with status {status}"

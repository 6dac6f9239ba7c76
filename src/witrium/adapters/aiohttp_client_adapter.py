# witrium/adapters/aiohttp_client_adapter.py
import asyncio
import json as jsonlib
from typing import Any, Dict, Optional

import aiohttp

from witrium.core.exceptions import RemoteRequestError
from witrium.core.interfaces.http_client import HttpClientPort
from witrium.core.settings import logger

DEFAULT_BASE_URL = "https://api.witrium.com"
DEFAULT_TIMEOUT = 60.0  # seconds
API_KEY_HEADER = "X-Witrium-Key"


class AioHttpClientAdapter(HttpClientPort):
    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session: Optional[aiohttp.ClientSession] = None
        self._base_url = base_url.rstrip("/")
        self._headers = {
            API_KEY_HEADER: api_token,
            "Content-Type": "application/json",
        }
        # Applied to every request; sock_connect stays short so an unreachable
        # service fails fast even with a long total budget.
        self._client_timeout = aiohttp.ClientTimeout(
            total=timeout,
            sock_connect=min(timeout, 10.0),
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self):
        """Async context manager entry"""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _ensure_session(self) -> aiohttp.ClientSession:
        # Created lazily: a ClientSession must be built inside a running loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers,
                timeout=self._client_timeout,
            )
        return self._session

    async def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, json=json)

    async def delete(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        return await self._request("DELETE", path, params=params)

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send a request and return the parsed JSON body.

        Translates HTTP/network errors into RemoteRequestError carrying the
        server's detail message and the HTTP status code when there is one.
        """
        session = self._ensure_session()
        url = f"{self._base_url}{path}"

        try:
            async with session.request(method, url, json=json, params=params) as response:
                try:
                    body = await response.json()
                    is_json = True
                except (aiohttp.ContentTypeError, ValueError):
                    body = await response.text(errors="replace")
                    is_json = False

                if response.status >= 400:
                    detail = _extract_error_detail(body)
                    log = logger.warning if response.status < 500 else logger.error
                    log(
                        "[http:error] %s %s status=%s detail=%s",
                        method,
                        url,
                        response.status,
                        detail[:500],
                    )
                    raise RemoteRequestError(
                        f"The service returned HTTP {response.status}: {detail}",
                        detail=detail,
                        status_code=response.status,
                    )

                if not is_json and body.strip():
                    logger.error(
                        "[http:error] invalid JSON response %s %s content=%s",
                        method,
                        url,
                        body[:500],
                    )
                    raise RemoteRequestError(
                        "The response from the service was not valid JSON",
                        detail=f"The response from the service was not valid JSON: '{body[:100]}'",
                        status_code=response.status,
                    )

                return body if is_json else None

        except RemoteRequestError:
            raise

        except asyncio.TimeoutError:
            logger.error("[http:error] timeout %s %s", method, url)
            raise RemoteRequestError("Request timed out", detail="Request timed out")

        except aiohttp.ClientError as client_error:
            logger.error(
                "[http:error] connection error %s %s error=%s",
                method,
                url,
                str(client_error),
            )
            detail = str(client_error) or type(client_error).__name__
            raise RemoteRequestError(detail, detail=detail)


def _extract_error_detail(body: Any) -> str:
    """Prefer the service's `detail` string, fall back to the raw body."""
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    if isinstance(body, str):
        return body or "Unknown error"
    return jsonlib.dumps(body)

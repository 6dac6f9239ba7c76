# witrium/core/interfaces/http_client.py
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class HttpClientPort(ABC):
    """Transport to the automation service.

    Paths are relative to the adapter's base URL. Every method returns the
    parsed JSON document and raises RemoteRequestError on any transport
    failure or non-2xx response.
    """

    @abstractmethod
    async def __aenter__(self) -> "HttpClientPort":
        """Async context manager entry method"""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit method"""
        pass

    @abstractmethod
    async def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        pass

    @abstractmethod
    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        pass

    @abstractmethod
    async def delete(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the HTTP client session"""
        pass

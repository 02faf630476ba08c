"""Synchronous HTTP client for one-shot CLI commands"""

from typing import Any

import requests

from ..api.client import ProtocolError, TransportError


class HTTPClient:
    """Simple HTTP client wrapper"""

    def __init__(self, base_url: str, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}", path=path) from e
        if not response.ok:
            raise ProtocolError(
                f"{method} {path} failed (HTTP {response.status_code})",
                status_code=response.status_code,
                path=path,
            )
        return response

    def _json(self, response: requests.Response, path: str) -> Any:
        try:
            return response.json()
        except requests.exceptions.JSONDecodeError as e:
            raise ProtocolError(f"{path}: response is not valid JSON", path=path) from e

    def get(self, path: str, params: dict | None = None) -> Any:
        """Make GET request"""
        return self._json(self._send("GET", path, params=params), path)

    def post(self, path: str, payload: Any) -> Any:
        """Make POST request with a JSON body"""
        return self._json(self._send("POST", path, json=payload), path)

    def close(self):
        self.session.close()

"""Synchronous HTTP transport for the Earth Care client."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    PermissionDenied,
    ServerError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class HTTPClient:
    """
    JSON-over-HTTP with bearer auth.

    ``session`` may be any object with the ``requests.Session.request``
    signature (the FastAPI ``TestClient`` qualifies). When omitted a
    ``requests.Session`` is built that retries idempotent reads on 5xx.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 2,
        session: Any = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=max_retries,
                status_forcelist=[502, 503, 504],
                allowed_methods=["GET", "HEAD", "OPTIONS"],
                backoff_factor=0.5,
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def _build_url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def _handle_response(self, response) -> Any:
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = {"detail": response.text}

        if 200 <= response.status_code < 300:
            return data

        detail = data.get("detail") if isinstance(data, dict) else None
        if not isinstance(detail, str):
            detail = f"HTTP {response.status_code}"

        code = response.status_code
        if code in (400, 422):
            raise ValidationError(detail, code, response)
        elif code == 401:
            raise AuthenticationError(detail, code, response)
        elif code == 403:
            raise PermissionDenied(detail, code, response)
        elif code == 404:
            raise NotFoundError(detail, code, response)
        elif code >= 500:
            raise ServerError(detail, code, response)
        raise ApiError(detail, code, response)

    def request(
        self,
        method: str,
        path: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.session.request(
                method,
                self._build_url(path),
                json=json_data,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise TransportError(f"Request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        logger.debug("%s %s -> %s", method, path, response.status_code)
        return self._handle_response(response)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json_data: Any = None) -> Any:
        return self.request("POST", path, json_data=json_data)

    def put(self, path: str, json_data: Any = None) -> Any:
        return self.request("PUT", path, json_data=json_data)

    def patch(self, path: str, json_data: Any = None) -> Any:
        return self.request("PATCH", path, json_data=json_data)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

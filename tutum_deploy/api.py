"""Tutum REST API client."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests
from pydantic import BaseModel, field_validator

from tutum_deploy.exceptions import ConfigurationError, TransportError, UnexpectedStatusError
from tutum_deploy.logging_config import get_logger

logger = get_logger(__name__)

API_VERSION = 1
DEFAULT_API_URL = "https://dashboard.tutum.co"

USER_ENV = "TUTUM_USER"
APIKEY_ENV = "TUTUM_APIKEY"
API_URL_ENV = "TUTUM_API_URL"


class Credentials(BaseModel):
    """Tutum API user and key."""

    user: str
    apikey: str

    @field_validator("user", "apikey")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("cannot be empty")
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "Credentials":
        """Read credentials from ``TUTUM_USER`` and ``TUTUM_APIKEY``.

        Raises:
            ConfigurationError: If either variable is unset or empty
        """
        missing = [name for name in (USER_ENV, APIKEY_ENV) if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"Tutum credentials missing: {', '.join(missing)}",
                "Find your API key under Account info > API Key in the Tutum dashboard",
            )
        return cls(user=environ[USER_ENV], apikey=environ[APIKEY_ENV])

    @property
    def authorization(self) -> str:
        return f"ApiKey {self.user}:{self.apikey}"


@dataclass
class ApiResponse:
    """Status code and parsed JSON body of a call."""

    status_code: int
    body: Any


class ApiClient:
    """Synchronous client for the versioned Tutum REST API.

    Every call expects exactly one success status and raises
    ``UnexpectedStatusError`` for anything else. There are no retries.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = DEFAULT_API_URL,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client.

        Args:
            credentials: API user and key
            base_url: Scheme and host of the API
            session: Session to send requests with
            timeout: Per-request timeout in seconds, None for no timeout
        """
        self.credentials = credentials
        self.prefix = f"/api/v{API_VERSION}"
        self.base_url = base_url.rstrip("/") + self.prefix
        self.session = session or requests.Session()
        self.timeout = timeout

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": self.credentials.authorization,
            "Accept": "application/json",
        }

    def url(self, path: str) -> str:
        return self.base_url + path

    def link(self, resource: str, uuid: str) -> str:
        """Resource reference such as ``/api/v1/service/<uuid>/``."""
        return f"{self.prefix}/{resource}/{uuid}/"

    def request(
        self,
        method: str,
        path: str,
        expected: int,
        operation: str,
        payload: dict | None = None,
        params: dict | None = None,
    ) -> ApiResponse:
        """Send one request and check its status.

        Raises:
            TransportError: If no response was received
            UnexpectedStatusError: If the status is not ``expected``
        """
        logger.debug(f"{method} {path} params={params}")
        try:
            response = self.session.request(
                method,
                self.url(path),
                headers=self.headers(),
                json=payload,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"error {operation}: {e}", f"{method} {self.url(path)}")

        logger.debug(f"{method} {path} -> {response.status_code}")
        if response.status_code != expected:
            raise UnexpectedStatusError(operation, response.status_code, response.text)

        try:
            body = response.json() if response.content else None
        except ValueError:
            raise TransportError(
                f"error {operation}: response is not valid JSON", response.text[:200]
            )
        return ApiResponse(status_code=response.status_code, body=body)

    def fetch(self, path: str, operation: str, params: dict | None = None) -> Any:
        """GET expecting 200."""
        return self.request("GET", path, 200, operation, params=params).body

    def fetch_objects(self, path: str, operation: str, params: dict | None = None) -> list[dict]:
        """GET a collection and return its ``objects``."""
        body = self.fetch(path, operation, params=params) or {}
        return body.get("objects", [])

    def create(self, path: str, payload: dict, operation: str) -> Any:
        """POST expecting 201."""
        return self.request("POST", path, 201, operation, payload=payload).body

    def update(self, path: str, payload: dict, operation: str) -> Any:
        """PATCH expecting 200."""
        return self.request("PATCH", path, 200, operation, payload=payload).body

    def action(self, path: str, operation: str) -> Any:
        """POST an asynchronous action (deploy, start, redeploy) expecting 202."""
        return self.request("POST", path, 202, operation, payload={}).body

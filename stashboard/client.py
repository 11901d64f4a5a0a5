"""Stashboard API client.

Signed access to a Stashboard instance: services, statuses and events.
Every method is a single request; responses come back as the decoded JSON.
"""

import time
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote, urlsplit

import httpx

from stashboard.auth import OAuth1Auth
from stashboard.config import Settings, settings
from stashboard.core.logging import get_logger

logger = get_logger("client")

API_ROOT = "/api/v1"

# Stashboard issues access tokens against a fixed anonymous consumer.
CONSUMER_KEY = "anonymous"
CONSUMER_SECRET = "anonymous"

Document = Dict[str, Any]


class StashboardError(Exception):
    """Base class for errors raised by the Stashboard client."""


class ConfigurationError(StashboardError):
    """Raised when the client is built with a bad base URL or credential."""


class TransportError(StashboardError):
    """Raised when a request fails or the server answers with a non-2xx status."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, body: str = ""
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class DecodeError(StashboardError):
    """Raised when a response body is not the JSON the endpoint promises."""

    def __init__(self, message: str, body: str = ""):
        self.body = body
        super().__init__(message)


def _normalize_base_url(base_url: str, allow_insecure: bool) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise ConfigurationError("base_url is required")

    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(
            f"base_url must be an absolute http(s) URL, got {base_url!r}"
        )
    if parts.query or parts.fragment:
        raise ConfigurationError(
            f"base_url must not carry a query or fragment, got {base_url!r}"
        )
    if parts.scheme != "https" and not allow_insecure:
        raise ConfigurationError(
            f"base_url must use https, got {base_url!r} "
            "(set allow_insecure=True for local servers)"
        )
    return base_url.rstrip("/")


def _segment(value: str, name: str) -> str:
    """Quote an identifier as exactly one path segment."""
    if value is None or str(value) == "":
        raise ValueError(f"{name} is required")
    return quote(str(value), safe="")


def _query_params(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for key, value in (options or {}).items():
        if value is None:
            continue
        if isinstance(value, date):
            value = value.isoformat()
        params[key] = value
    return params


class Stashboard:
    """Synchronous client for the Stashboard v1 REST API.

    Args:
        base_url: root of the Stashboard instance, e.g. ``https://status.example.com``.
        oauth_token: access token generated by the instance (the long one).
        oauth_secret: access token secret (the shorter one).
        http_client: ``httpx.Client`` to send through. One is created (and
            closed by :meth:`close`) when omitted.
        timeout: request timeout for the created client, in seconds.
        allow_insecure: accept a plain ``http`` base URL.
    """

    def __init__(
        self,
        base_url: str,
        oauth_token: str,
        oauth_secret: str,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
        allow_insecure: Optional[bool] = None,
    ):
        if allow_insecure is None:
            allow_insecure = settings.allow_insecure_http
        self._base_url = _normalize_base_url(base_url, allow_insecure)
        if not oauth_token or not oauth_secret:
            raise ConfigurationError("oauth_token and oauth_secret are required")
        self._oauth_token = oauth_token
        self._oauth_secret = oauth_secret

        self._auth = OAuth1Auth(
            CONSUMER_KEY, CONSUMER_SECRET, oauth_token, oauth_secret
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=timeout if timeout is not None else settings.http_timeout
        )
        logger.info(f"Stashboard client ready for {self._base_url}")

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> "Stashboard":
        """Build a client from environment-backed settings."""
        config = config or settings
        return cls(
            config.stashboard_base_url,
            config.stashboard_oauth_token,
            config.stashboard_oauth_secret,
            http_client=http_client,
            timeout=config.http_timeout,
            allow_insecure=config.allow_insecure_http,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def oauth_token(self) -> str:
        return self._oauth_token

    @property
    def oauth_secret(self) -> str:
        return self._oauth_secret

    def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "Stashboard":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Core Request Method ──

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        unwrap: Optional[str] = None,
    ) -> Any:
        """Send one signed request and decode its JSON body.

        With ``unwrap``, the body must be an object and only that field is returned.
        """
        url = f"{self._base_url}{API_ROOT}{path}"
        context = {"method": method, "path": path}
        started = time.perf_counter()

        try:
            resp = self._client.request(
                method, url, params=params, data=data, auth=self._auth
            )
        except httpx.RequestError as e:
            logger.warning(f"Request failed: {method} {path}: {e}", extra=context)
            raise TransportError(f"{method} {path} failed: {e}") from e

        context["status_code"] = resp.status_code
        context["duration_ms"] = round((time.perf_counter() - started) * 1000, 1)

        if not resp.is_success:
            logger.warning(
                f"{method} {path} returned HTTP {resp.status_code}", extra=context
            )
            raise TransportError(
                f"{method} {path} returned HTTP {resp.status_code}",
                resp.status_code,
                resp.text,
            )

        logger.debug(f"{method} {path} -> {resp.status_code}", extra=context)
        try:
            payload = resp.json()
        except ValueError as e:
            raise DecodeError(
                f"{method} {path} returned a body that is not JSON: {e}", resp.text
            ) from e

        if unwrap is None:
            return payload
        if not isinstance(payload, dict) or unwrap not in payload:
            raise DecodeError(
                f"{method} {path} response has no {unwrap!r} field", resp.text
            )
        return payload[unwrap]

    # ── Services ──

    def services(self) -> List[Document]:
        """List every service on the instance."""
        return self._request("GET", "/services")

    def service(self, service_id: str) -> Document:
        """Get one service by its server-generated id."""
        return self._request("GET", f"/services/{_segment(service_id, 'service_id')}")

    def create_service(self, name: str, description: str) -> Document:
        """Create a service and return it as stored by the server."""
        return self._request(
            "POST", "/services", data={"name": name, "description": description}
        )

    def delete_service(self, service_id: str) -> Document:
        """Delete a service, and with it every event of that service."""
        return self._request(
            "DELETE", f"/services/{_segment(service_id, 'service_id')}"
        )

    def update_service(
        self, service_id: str, name: str, description: str
    ) -> Document:
        """Rename or re-describe a service. The id never changes."""
        return self._request(
            "POST",
            f"/services/{_segment(service_id, 'service_id')}",
            data={"name": name, "description": description},
        )

    # ── Levels ──

    def levels(self) -> List[str]:
        """Levels a status may use, e.g. ``["NORMAL", "WARNING", "ERROR"]``."""
        return self._request("GET", "/levels", unwrap="levels")

    # ── Events ──

    def events(
        self, service_id: str, options: Optional[Mapping[str, Any]] = None
    ) -> List[Document]:
        """Events of a service.

        ``options`` is sent as query parameters; the server honours ``start``
        and ``end`` to bound the time window. Dates and datetimes are sent in
        ISO-8601 form and ``None`` values are dropped.
        """
        path = f"/services/{_segment(service_id, 'service_id')}/events"
        return self._request("GET", path, params=_query_params(options))

    def create_event(
        self, service_id: str, status_id: str, message: str
    ) -> Document:
        """Apply an existing status to a service."""
        path = f"/services/{_segment(service_id, 'service_id')}/events"
        return self._request(
            "POST", path, data={"status": status_id, "message": message}
        )

    def current_event(self, service_id: str) -> Document:
        path = f"/services/{_segment(service_id, 'service_id')}/events/current"
        return self._request("GET", path)

    def event(self, service_id: str, event_sid: str) -> Document:
        """Get one event by the sid returned when it was created."""
        path = (
            f"/services/{_segment(service_id, 'service_id')}"
            f"/events/{_segment(event_sid, 'event_sid')}"
        )
        return self._request("GET", path)

    def delete_event(self, service_id: str, event_sid: str) -> Document:
        path = (
            f"/services/{_segment(service_id, 'service_id')}"
            f"/events/{_segment(event_sid, 'event_sid')}"
        )
        return self._request("DELETE", path)

    # ── Statuses ──

    def statuses(self) -> List[Document]:
        return self._request("GET", "/statuses")

    def status(self, status_id: str) -> Document:
        return self._request("GET", f"/statuses/{_segment(status_id, 'status_id')}")

    def create_status(
        self, name: str, description: str, level: str, image: str
    ) -> Document:
        """Create a status. Statuses are independent of services.

        ``level`` must be one of :meth:`levels`; ``image`` is an image name from
        :meth:`status_images`, without directory or file extension.
        """
        return self._request(
            "POST",
            "/statuses",
            data={
                "name": name,
                "description": description,
                "level": level,
                "image": image,
            },
        )

    def status_images(self) -> List[Document]:
        """Every status image the server knows about."""
        return self._request("GET", "/status-images", unwrap="images")

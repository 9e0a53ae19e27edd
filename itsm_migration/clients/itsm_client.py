"""Client for the target ticketing system's REST object API.

Exposes the small surface the migration needs: class and relationship
lookup by name, the enumeration catalog, user lookup, object and
relationship creation, projection commits and attachment upload.

All error handling uses exceptions rather than status dictionaries.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from itsm_migration.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    RateLimitError,
    ResourceNotFoundError,
)
from itsm_migration.display import get_logger
from itsm_migration.mappings import target_model
from itsm_migration.models.records import Projection
from itsm_migration.type_definitions import TargetConfig
from itsm_migration.utils import data_handler

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
HTTP_BAD_REQUEST_MIN = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429


class ItsmClient:
    """Client for target ticketing-system operations."""

    def __init__(
        self,
        target_config: TargetConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            target_config: Connection settings; defaults to the ``target`` config section
            session: Optional pre-built session (dependency injection)

        Raises:
            ValueError: If no target URL is configured

        """
        if target_config is None:
            from itsm_migration import config  # noqa: PLC0415

            target_config = config.target_config

        self.base_url: str = str(target_config.get("url", "")).rstrip("/")
        if not self.base_url:
            msg = "Target URL is required"
            raise ValueError(msg)

        self.timeout: int = int(target_config.get("timeout", 60))
        self.verify_ssl: bool = bool(target_config.get("verify_ssl", True))
        self.session = session or self._create_session(target_config)
        self.request_count = 0

        self._class_cache: dict[str, dict[str, Any]] = {}
        self._relationship_cache: dict[str, dict[str, Any]] = {}

    def _create_session(self, target_config: TargetConfig) -> requests.Session:
        """Create an authenticated session that retries idempotent requests."""
        session = requests.Session()

        api_token = target_config.get("api_token")
        if api_token:
            session.headers["Authorization"] = f"Bearer {api_token}"
        elif target_config.get("username"):
            session.auth = (
                str(target_config.get("username")),
                str(target_config.get("password", "")),
            )
        session.headers["Accept"] = "application/json"

        # Object creation is not idempotent, so only reads are retried.
        retry_strategy = Retry(
            total=int(target_config.get("retries", 3)),
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _handle_response(self, response: requests.Response) -> None:
        """Raise the matching client exception for an error response."""
        if response.status_code < HTTP_BAD_REQUEST_MIN:
            return

        error_msg = f"HTTP Error {response.status_code}: {response.reason}"
        try:
            error_json = response.json()
            if isinstance(error_json, dict) and error_json.get("message"):
                error_msg = f"{error_msg} - {error_json['message']}"
        except ValueError:
            pass

        if response.status_code == HTTP_NOT_FOUND:
            raise ResourceNotFoundError(error_msg)
        if response.status_code in {HTTP_UNAUTHORIZED, HTTP_FORBIDDEN}:
            raise AuthenticationError(error_msg)
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                error_msg,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        raise ApiError(error_msg, status_code=response.status_code)

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        **kwargs: Any,
    ) -> Any:
        """Make an API request and return the decoded JSON body (or None).

        Raises:
            ClientConnectionError: If the request cannot be sent
            ClientError: Subclass matching the HTTP error status

        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers = kwargs.pop("headers", {})
        if payload is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = data_handler.dumps(payload).encode("utf-8")

        self.request_count += 1
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
                **kwargs,
            )
        except requests.RequestException as e:
            msg = f"Error during API request to {url}: {e!s}"
            raise ClientConnectionError(msg) from e

        self._handle_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON in response from {url}"
            raise ApiError(msg, status_code=response.status_code) from e

    def get_class(self, name: str) -> dict[str, Any]:
        """Look up an object class by name (cached)."""
        if name not in self._class_cache:
            self._class_cache[name] = self._request("GET", f"/classes/{quote(name, safe='')}")
        return self._class_cache[name]

    def get_relationship_class(self, name: str) -> dict[str, Any]:
        """Look up a relationship class by name (cached)."""
        if name not in self._relationship_cache:
            self._relationship_cache[name] = self._request(
                "GET", f"/relationship-classes/{quote(name, safe='')}",
            )
        return self._relationship_cache[name]

    def get_enumerations(self) -> list[dict[str, Any]]:
        """Return the full enumeration catalog as ``[{id, name, displayName}]``."""
        return list(self._request("GET", "/enumerations") or [])

    def find_users_by_display_name(self, display_name: str) -> list[dict[str, Any]]:
        """Return every user whose display name equals the given one exactly."""
        users = self._request("GET", "/users", params={"displayName": display_name}) or []
        return [u for u in users if u.get("displayName") == display_name]

    def create_object(self, class_name: str, properties: dict[str, Any]) -> dict[str, Any]:
        """Create an object of the named class.

        Returns:
            ``{"id": <internal reference>, "displayId": <human-readable id>}``

        """
        class_id = self.get_class(class_name)["id"]
        created = self._request(
            "POST", "/objects", payload={"classId": class_id, "properties": properties},
        )
        if not created or "id" not in created:
            msg = f"Target returned no identifier for new {class_name}"
            raise ApiError(msg)
        return created

    def create_relationship(self, relationship: str, source_ref: str, target_ref: str) -> dict[str, Any]:
        """Create a relationship instance between two existing objects."""
        relationship_id = self.get_relationship_class(relationship)["id"]
        return self._request(
            "POST",
            "/relationships",
            payload={"relationshipId": relationship_id, "sourceId": source_ref, "targetId": target_ref},
        ) or {}

    def commit_projection(self, projection: Projection) -> dict[str, Any]:
        """Write a seed object and its new or linked children in one commit."""
        children: list[dict[str, Any]] = []
        for child in projection.children:
            entry: dict[str, Any] = {
                "relationshipId": self.get_relationship_class(child.relationship)["id"],
            }
            if child.kind == "attachment":
                entry["id"] = child.ref
            else:
                entry["classId"] = self.get_class(child.object_class)["id"]
                entry["properties"] = child.properties()
            children.append(entry)

        payload = {
            "seed": {"id": projection.seed, "classId": self.get_class(projection.seed_class)["id"]},
            "children": children,
        }
        return self._request("POST", "/projections", payload=payload) or {}

    def get_related_objects(self, ref: str, relationship: str) -> list[dict[str, Any]]:
        """Return objects related to ``ref`` through the named relationship."""
        relationship_id = self.get_relationship_class(relationship)["id"]
        return list(
            self._request(
                "GET",
                f"/objects/{quote(ref, safe='')}/related",
                params={"relationshipId": relationship_id},
            ) or [],
        )

    def create_attachment(
        self,
        filename: str,
        content: bytes,
        properties: dict[str, Any],
        class_name: str = target_model.ATTACHMENT_CLASS,
    ) -> dict[str, Any]:
        """Upload an attachment object with its byte content; it is not linked yet."""
        class_id = self.get_class(class_name)["id"]
        created = self._request(
            "POST",
            "/attachments",
            files={"content": (filename, content, "application/octet-stream")},
            data={"classId": class_id, "properties": data_handler.dumps(properties)},
        )
        if not created or "id" not in created:
            msg = f"Target returned no identifier for attachment {filename}"
            raise ApiError(msg)
        return created

"""Factory functions for creating consistent fake objects for testing."""

from itertools import count
from typing import Any

from itsm_migration.clients.exceptions import ApiError, ClientConnectionError
from itsm_migration.mappings import target_model
from itsm_migration.models import Projection

DISPLAY_PREFIXES = {
    target_model.INCIDENT_CLASS: "IR",
    target_model.SERVICE_REQUEST_CLASS: "SR",
    target_model.MANUAL_ACTIVITY_CLASS: "MA",
    target_model.REVIEW_ACTIVITY_CLASS: "RA",
    target_model.PARALLEL_ACTIVITY_CLASS: "PA",
}

DEFAULT_ENUMERATIONS = [
    {"id": "enum-active", "name": "IncidentStatusEnum.Active", "displayName": "Active"},
    {"id": "enum-closed", "name": "IncidentStatusEnum.Closed", "displayName": "Closed"},
    {"id": "enum-email", "name": "IncidentSourceEnum.Email", "displayName": "E-Mail"},
    {"id": "enum-high", "name": "System.WorkItem.TroubleTicket.ImpactEnum.High", "displayName": "High"},
    {"id": "enum-low", "name": "System.WorkItem.TroubleTicket.UrgencyEnum.Low", "displayName": "Low"},
    {"id": "enum-tier1", "name": "IncidentTierQueuesEnum.Tier1", "displayName": "Tier 1"},
    {"id": "enum-inprogress", "name": "ActivityStatusEnum.Active", "displayName": "In Progress"},
    {"id": "enum-submitted", "name": "ServiceRequestStatusEnum.Submitted", "displayName": "Submitted"},
    {"id": "enum-medium", "name": "ServiceRequestPriorityEnum.Medium", "displayName": "Medium"},
    # display name shared by two lists; the first one wins
    {"id": "enum-active-2", "name": "ServiceRequestStatusEnum.Active", "displayName": "Active"},
]

DEFAULT_USERS = {
    "Jane Doe": [{"id": "user-jane", "displayName": "Jane Doe"}],
    "Migration Surrogate": [{"id": "user-surrogate", "displayName": "Migration Surrogate"}],
    "Service Desk": [{"id": "user-desk", "displayName": "Service Desk"}],
}


class FakeItsmClient:
    """In-memory stand-in for ItsmClient recording every write."""

    def __init__(
        self,
        enumerations: list[dict[str, Any]] | None = None,
        users: dict[str, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.enumerations = list(DEFAULT_ENUMERATIONS if enumerations is None else enumerations)
        self.users = dict(DEFAULT_USERS if users is None else users)
        self.objects: dict[str, dict[str, Any]] = {}
        self.relationships: list[tuple[str, str, str]] = []
        self.projections: list[Projection] = []
        self.attachments: list[dict[str, Any]] = []
        self.user_lookups: list[str] = []

        self.fail_on_titles: set[str] = set()
        self.failing_user_lookups: set[str] = set()
        self.fail_projections = False

        self._refs = count(1)
        self._display_ids = count(9001)

    def get_class(self, name: str) -> dict[str, Any]:
        return {"id": f"class:{name}", "name": name}

    def get_relationship_class(self, name: str) -> dict[str, Any]:
        return {"id": f"rel:{name}", "name": name}

    def get_enumerations(self) -> list[dict[str, Any]]:
        return list(self.enumerations)

    def find_users_by_display_name(self, display_name: str) -> list[dict[str, Any]]:
        self.user_lookups.append(display_name)
        if display_name in self.failing_user_lookups:
            msg = f"lookup of {display_name} failed"
            raise ClientConnectionError(msg)
        return list(self.users.get(display_name, []))

    def create_object(self, class_name: str, properties: dict[str, Any]) -> dict[str, Any]:
        if properties.get("Title") in self.fail_on_titles:
            msg = f"HTTP Error 400: Bad Request - rejected {properties.get('Title')}"
            raise ApiError(msg, status_code=400)
        ref = f"ref-{next(self._refs)}"
        display_id = properties.get("Id") or f"{DISPLAY_PREFIXES.get(class_name, 'OBJ')}{next(self._display_ids)}"
        self.objects[ref] = {"class": class_name, "properties": dict(properties), "displayId": display_id}
        return {"id": ref, "displayId": display_id}

    def create_relationship(self, relationship: str, source_ref: str, target_ref: str) -> dict[str, Any]:
        self.relationships.append((relationship, source_ref, target_ref))
        return {"id": f"relationship-{len(self.relationships)}"}

    def commit_projection(self, projection: Projection) -> dict[str, Any]:
        if self.fail_projections:
            msg = "HTTP Error 500: Internal Server Error"
            raise ApiError(msg, status_code=500)
        self.projections.append(projection)
        return {}

    def get_related_objects(self, ref: str, relationship: str) -> list[dict[str, Any]]:
        return [{"id": target} for rel, source, target in self.relationships if rel == relationship and source == ref]

    def create_attachment(
        self,
        filename: str,
        content: bytes,
        properties: dict[str, Any],
        class_name: str = target_model.ATTACHMENT_CLASS,
    ) -> dict[str, Any]:
        ref = f"att-{next(self._refs)}"
        self.attachments.append(
            {"id": ref, "filename": filename, "content": content, "properties": properties, "class": class_name},
        )
        return {"id": ref}

    # helpers for assertions

    def objects_of(self, class_name: str) -> list[dict[str, Any]]:
        return [o for o in self.objects.values() if o["class"] == class_name]

    def ref_for(self, display_id: str) -> str:
        for ref, obj in self.objects.items():
            if obj["displayId"] == display_id:
                return ref
        raise KeyError(display_id)

    def relationships_of(self, relationship: str) -> list[tuple[str, str]]:
        return [(source, target) for rel, source, target in self.relationships if rel == relationship]


def create_fake_client(**kwargs: Any) -> FakeItsmClient:
    """Create a FakeItsmClient with the default catalog and users.

    Returns:
        FakeItsmClient: A fresh in-memory target

    """
    return FakeItsmClient(**kwargs)

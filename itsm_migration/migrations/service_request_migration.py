"""Service Request migration: create Service Requests and, optionally, their activities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from itsm_migration.migrations.work_item_migration import WorkItemMigration
from itsm_migration.models import ComponentResult, DiffEntry
from itsm_migration.type_definitions import FieldSchema, SourceRecord

if TYPE_CHECKING:
    from itsm_migration.migrations.sub_activity_migration import SubActivityMigration
    from itsm_migration.utils.record_reader import RecordSource

SERVICE_REQUEST_SCHEMA: FieldSchema = {
    "Id": "string",
    "Title": "string",
    "Description": "text",
    "Status": "enum",
    "Priority": "enum",
    "Urgency": "enum",
    "Source": "enum",
    "ImplementationResults": "enum",
    "Area": "enum",
    "SupportGroup": "enum",
    "Notes": "text",
    "UserInput": "text",
    "ContactMethod": "string",
    "TemplateId": "string",
    "CreatedDate": "datetime",
    "CompletedDate": "datetime",
    "ClosedDate": "datetime",
    "FirstAssignedDate": "datetime",
    "FirstResponseDate": "datetime",
    "ScheduledStartDate": "datetime",
    "ScheduledEndDate": "datetime",
    "RequiredBy": "datetime",
    "IsParent": "bool",
}


class ServiceRequestMigration(WorkItemMigration):
    """Create Service Requests; with sub_activities set, also their activity tree."""

    COMPONENT_NAME = "service_requests"
    WORK_ITEM_TYPE = "service_request"
    FIELD_SCHEMA = SERVICE_REQUEST_SCHEMA

    def __init__(self, *args: Any, sub_activities: SubActivityMigration | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.sub_activities = sub_activities
        if sub_activities is not None:
            # collected into this phase's warnings alongside the work-item resolvers
            self.resolvers["ActivityAssignedTo"] = sub_activities.assigned_to

    def enum_sources(self) -> dict[str, RecordSource]:
        sources = super().enum_sources()
        if self.sub_activities is not None:
            sources.update({kind: s for kind, s in self.sub_activities.sources.items() if len(s)})
        return sources

    def after_create(self, record: SourceRecord, entry: DiffEntry, result: ComponentResult) -> None:
        if self.sub_activities is None:
            return
        created = self.sub_activities.import_children(entry, result)
        result.details["activities_created"] = result.details.get("activities_created", 0) + created

"""Incident migration: create Incidents from the legacy export."""

from __future__ import annotations

from itsm_migration.migrations.work_item_migration import WorkItemMigration
from itsm_migration.type_definitions import FieldSchema

INCIDENT_SCHEMA: FieldSchema = {
    "Id": "string",
    "Title": "string",
    "Description": "text",
    "Classification": "enum",
    "Source": "enum",
    "Status": "enum",
    "Impact": "enum",
    "Urgency": "enum",
    "Priority": "int",
    "TierQueue": "enum",
    "ResolutionCategory": "enum",
    "ResolutionDescription": "text",
    "UserInput": "text",
    "ContactMethod": "string",
    "CreatedDate": "datetime",
    "FirstAssignedDate": "datetime",
    "FirstResponseDate": "datetime",
    "ResolvedDate": "datetime",
    "ClosedDate": "datetime",
    "TargetResolutionTime": "datetime",
    "Escalated": "bool",
    "HasCreatedKnowledgeArticle": "bool",
    "NeedsKnowledgeArticle": "bool",
    "IsParent": "bool",
}


class IncidentMigration(WorkItemMigration):
    """Create Incidents, their user relationships and Diff Table rows."""

    COMPONENT_NAME = "incidents"
    WORK_ITEM_TYPE = "incident"
    FIELD_SCHEMA = INCIDENT_SCHEMA

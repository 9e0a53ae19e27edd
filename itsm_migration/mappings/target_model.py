"""Class and relationship names of the target ticketing object model.

The target client resolves these names through its class and relationship
lookups, so only this module needs to change when a target instance uses a
different naming scheme.
"""

INCIDENT_CLASS = "System.WorkItem.Incident"
SERVICE_REQUEST_CLASS = "System.WorkItem.ServiceRequest"

MANUAL_ACTIVITY_CLASS = "System.WorkItem.Activity.ManualActivity"
REVIEW_ACTIVITY_CLASS = "System.WorkItem.Activity.ReviewActivity"
PARALLEL_ACTIVITY_CLASS = "System.WorkItem.Activity.ParallelActivity"

USER_COMMENT_CLASS = "System.WorkItem.TroubleTicket.UserCommentLog"
ANALYST_COMMENT_CLASS = "System.WorkItem.TroubleTicket.AnalystCommentLog"
ATTACHMENT_CLASS = "System.FileAttachment"

AFFECTED_USER = "System.WorkItemAffectedUser"
ASSIGNED_TO = "System.WorkItemAssignedToUser"
CONTAINS_ACTIVITY = "System.WorkItemContainsActivity"
HAS_USER_COMMENT = "System.WorkItem.TroubleTicketHasUserComment"
HAS_ANALYST_COMMENT = "System.WorkItem.TroubleTicketHasAnalystComment"
HAS_ATTACHMENT = "System.WorkItemHasFileAttachment"

WORK_ITEM_CLASSES = {
    "incident": INCIDENT_CLASS,
    "service_request": SERVICE_REQUEST_CLASS,
}

ACTIVITY_CLASSES = {
    "manual": MANUAL_ACTIVITY_CLASS,
    "review": REVIEW_ACTIVITY_CLASS,
    "parallel": PARALLEL_ACTIVITY_CLASS,
}

# Legacy identifier prefixes, used to tell work-item types apart in a shared Diff Table.
ID_PREFIXES = {
    "incident": "IR",
    "service_request": "SR",
}


def work_item_type_for_id(identifier: str) -> str | None:
    """Return the work-item type a legacy identifier belongs to, if recognisable."""
    for item_type, prefix in ID_PREFIXES.items():
        if identifier.upper().startswith(prefix):
            return item_type
    return None

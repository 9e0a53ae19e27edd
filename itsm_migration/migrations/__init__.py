"""Migration phases: enumeration check, work items, activity logs, sub-activities, attachments."""

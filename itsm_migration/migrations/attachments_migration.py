"""Attachment migration.

Files are laid out as ``<root>/<legacy work item id>/<filename>``. Each file
is uploaded as an attachment object and then linked to the migrated work
item through a projection commit.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from itsm_migration.display import ProgressTracker
from itsm_migration.mappings import target_model
from itsm_migration.migrations.base_migration import CREATION_ERRORS, BaseMigration
from itsm_migration.models import AttachmentChild, ComponentResult, DiffEntry, Projection
from itsm_migration.type_definitions import WorkItemType
from itsm_migration.utils.timezone import UTC

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.mappings.diff_table import DiffTable


class AttachmentsMigration(BaseMigration):
    """Upload per-work-item attachment directories."""

    COMPONENT_NAME = "attachments"

    def __init__(
        self,
        client: ItsmClient,
        root: Path | str,
        diff_table: DiffTable,
        work_item_type: WorkItemType | None = None,
        max_size: int | None = None,
    ) -> None:
        """Initialize the phase.

        Args:
            client: Target client
            root: Directory holding one subdirectory per legacy work item
            diff_table: Diff Table of the migrated work items
            work_item_type: Parent type; inferred from the legacy id prefix when omitted
            max_size: Largest file in bytes to upload, 0 for no limit;
                defaults to ``migration.max_attachment_size``

        Raises:
            FileNotFoundError: If the root directory does not exist

        """
        super().__init__(client)
        self.root = Path(root)
        if not self.root.is_dir():
            msg = f"Attachment directory not found: {self.root}"
            raise FileNotFoundError(msg)
        self.diff_table = diff_table
        self.work_item_type = work_item_type
        self.max_size = int(self.settings.get("max_attachment_size", 0)) if max_size is None else max_size

    def _warn(self, result: ComponentResult, message: str) -> None:
        self.logger.warning(message)
        result.add_warning(message)

    def seed_class(self, previous_id: str) -> str:
        item_type = self.work_item_type or target_model.work_item_type_for_id(previous_id) or "incident"
        return target_model.WORK_ITEM_CLASSES[item_type]

    @staticmethod
    def attachment_properties(path: Path, size: int) -> dict[str, Any]:
        return {
            "Id": str(uuid4()),
            "DisplayName": path.name,
            "Description": path.name,
            "Extension": path.suffix,
            "Size": size,
            "AddedDate": datetime.now(tz=UTC),
        }

    def upload(self, path: Path, parent: DiffEntry) -> str:
        """Upload one file and link it to the parent; return the attachment reference.

        Raises:
            ClientError: If the upload or the link is rejected
            OSError: If the file cannot be read

        """
        content = path.read_bytes()
        created = self.client.create_attachment(
            path.name,
            content,
            self.attachment_properties(path, len(content)),
        )
        ref = str(created["id"])
        self.client.commit_projection(
            Projection(
                seed=parent.current_ref,
                seed_class=self.seed_class(parent.previous_id),
                children=[AttachmentChild(ref=ref)],
            ),
        )
        return ref

    def run(self) -> ComponentResult:
        """Upload every file under every mapped work-item directory."""
        directories = sorted(p for p in self.root.iterdir() if p.is_dir())
        files = {d: sorted(f for f in d.iterdir() if f.is_file()) for d in directories}
        total = sum(len(f) for f in files.values())
        self.logger.info("Starting attachment migration: %d file(s) in %d folder(s)", total, len(directories))
        result = ComponentResult(total_count=total)

        stopped = False
        with ProgressTracker("Migrating attachments", total) as tracker:
            for directory in directories:
                parent = self.diff_table.lookup(directory.name)
                if parent is None:
                    self._warn(result, f"{directory.name}: no Diff Table entry; attachment folder skipped")
                    result.skipped_count += len(files[directory])
                    tracker.increment(len(files[directory]))
                    continue

                for path in files[directory]:
                    tracker.increment()
                    try:
                        size = path.stat().st_size
                        if self.max_size and size > self.max_size:
                            self._warn(
                                result,
                                f"{directory.name}/{path.name}: {size} bytes exceeds the "
                                f"{self.max_size} byte limit; skipped",
                            )
                            result.skipped_count += 1
                            continue
                        self.upload(path, parent)
                    except (*CREATION_ERRORS, OSError) as e:
                        if self.record_failure(result, f"{directory.name}/{path.name}", e):
                            stopped = True
                            break
                        continue

                    result.success_count += 1
                    tracker.add_log_item(f"{path.name} -> {parent.current_id}")
                if stopped:
                    break

        return self.finish(result, "Attachment migration")

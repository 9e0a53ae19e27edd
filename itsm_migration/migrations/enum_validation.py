"""Pre-flight check of enumeration-backed source values.

Every enumeration-backed field value must name an existing enumeration in
the target. The whole input is scanned first and every distinct violation is
reported together, so missing reference data is fixed in one go instead of
being discovered one partial import at a time.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from itsm_migration.display import get_logger
from itsm_migration.migrations.base_migration import BaseMigration
from itsm_migration.models import ComponentResult, EnumValidationError, EnumViolation
from itsm_migration.type_definitions import SourceRecord

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.utils.record_reader import RecordSource

logger = get_logger(__name__)

ENUM_FIELDS: dict[str, tuple[str, ...]] = {
    "incident": (
        "Source",
        "Status",
        "TierQueue",
        "Classification",
        "ResolutionCategory",
        "Impact",
        "Urgency",
    ),
    "service_request": (
        "Status",
        "Priority",
        "Urgency",
        "Source",
        "ImplementationResults",
        "Area",
        "SupportGroup",
    ),
    "manual": ("Status", "Priority", "Stage", "Area"),
    "review": ("Status", "Priority", "Stage", "ApprovalCondition"),
    "parallel": ("Status", "Priority", "Stage"),
}


class EnumCatalog:
    """Display-name index over the target's enumeration catalog."""

    def __init__(self, enumerations: Iterable[dict[str, Any]]) -> None:
        self._by_display_name: dict[str, str] = {}
        for enum in enumerations:
            display_name = enum.get("displayName")
            if display_name is None or enum.get("id") is None:
                continue
            # first match wins for display names shared by several lists
            self._by_display_name.setdefault(str(display_name), str(enum["id"]))

    @classmethod
    def from_client(cls, client: ItsmClient) -> EnumCatalog:
        catalog = cls(client.get_enumerations())
        logger.info("Loaded enumeration catalog with %d display names", len(catalog))
        return catalog

    def resolve(self, display_name: str) -> str | None:
        """Return the enumeration id for an exact display name."""
        return self._by_display_name.get(display_name)

    def __contains__(self, display_name: object) -> bool:
        return display_name in self._by_display_name

    def __len__(self) -> int:
        return len(self._by_display_name)


def find_violations(
    records: Iterable[SourceRecord],
    fields: Iterable[str],
    catalog: EnumCatalog,
    source_name: str,
) -> list[EnumViolation]:
    """Return each distinct non-empty value that is missing from the catalog.

    An empty value means "unset" and is never a violation.
    """
    fields = tuple(fields)
    violations: list[EnumViolation] = []
    seen: set[EnumViolation] = set()
    for record in records:
        for field_name in fields:
            value = (record.get(field_name) or "").strip()
            if not value or value in catalog:
                continue
            violation = EnumViolation(source=source_name, field=field_name, value=value)
            if violation not in seen:
                seen.add(violation)
                violations.append(violation)
    return violations


class EnumValidator(BaseMigration):
    """Validates enumeration-backed fields of one or more source files."""

    COMPONENT_NAME = "enum_validation"

    def __init__(
        self,
        client: ItsmClient,
        sources: dict[str, RecordSource],
        catalog: EnumCatalog | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            client: Target client, used to load the catalog when none is given
            sources: Record sources keyed by kind (``incident``, ``service_request``,
                ``manual``, ``review``, ``parallel``)
            catalog: Pre-loaded enumeration catalog

        """
        super().__init__(client)
        unknown = set(sources) - set(ENUM_FIELDS)
        if unknown:
            msg = f"No enumeration fields defined for: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        self.sources = sources
        self._catalog = catalog

    @property
    def catalog(self) -> EnumCatalog:
        if self._catalog is None:
            self._catalog = EnumCatalog.from_client(self.client)
        return self._catalog

    def validate(self) -> None:
        """Scan all sources and raise once if anything is missing.

        Raises:
            EnumValidationError: Listing every distinct missing value

        """
        violations: list[EnumViolation] = []
        for kind, source in self.sources.items():
            found = find_violations(source, ENUM_FIELDS[kind], self.catalog, source.name or kind)
            for violation in found:
                self.logger.error("Enumeration not found in target: %s", violation)
            violations.extend(found)

        if violations:
            raise EnumValidationError(violations)

        self.logger.info(
            "Enumeration check passed for %d source(s), %d record(s)",
            len(self.sources),
            sum(len(s) for s in self.sources.values()),
        )

    def run(self) -> ComponentResult:
        result = ComponentResult(total_count=sum(len(s) for s in self.sources.values()))
        try:
            self.validate()
        except EnumValidationError as e:
            result.success = False
            result.failed_count = len(e.violations)
            result.errors = [str(v) for v in e.violations]
            result.error = e.message
            result.message = f"{len(e.violations)} missing enumeration value(s); nothing was imported"
            return result

        result.success = True
        result.success_count = result.total_count
        result.message = "All enumeration values found"
        return result

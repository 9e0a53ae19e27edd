"""Resolution of legacy user display names to target user objects.

Lookup rules:
- exactly one match: use it;
- lookup error or no match: use the surrogate user;
- several matches: assign nobody and warn, since picking one of several
  same-named users could hand a ticket to the wrong person.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from itsm_migration.clients.exceptions import ClientError
from itsm_migration.display import get_logger

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient

logger = get_logger(__name__)

type ResolutionSource = Literal["match", "surrogate", "ambiguous", "unresolved"]


@dataclass(frozen=True, slots=True)
class UserResolution:
    """Outcome of resolving one display name."""

    source: ResolutionSource
    user: dict[str, Any] | None = None

    @property
    def ref(self) -> str | None:
        if self.user is None:
            return None
        return str(self.user["id"])


class UserResolver:
    """Resolves display names for one relationship, with a fixed surrogate."""

    def __init__(self, client: ItsmClient, surrogate_name: str, relationship_label: str = "user") -> None:
        if not surrogate_name or not surrogate_name.strip():
            msg = f"A surrogate display name is required for {relationship_label}"
            raise ValueError(msg)
        self.client = client
        self.surrogate_name = surrogate_name.strip()
        self.relationship_label = relationship_label
        self.warnings: list[str] = []
        self._cache: dict[str, UserResolution] = {}
        self._surrogate: UserResolution | None = None

    def _lookup(self, display_name: str) -> list[dict[str, Any]] | None:
        """Return matches, or None when the lookup itself failed."""
        try:
            return self.client.find_users_by_display_name(display_name)
        except ClientError as e:
            logger.debug("User lookup for %r failed: %s", display_name, e)
            return None

    def _resolve_surrogate(self) -> UserResolution:
        if self._surrogate is None:
            matches = self._lookup(self.surrogate_name)
            if matches is None:
                # not cached, retried on the next fallback
                return UserResolution("unresolved")
            if len(matches) == 1:
                self._surrogate = UserResolution("surrogate", matches[0])
            else:
                logger.error(
                    "Surrogate %s %r resolved to %d users; surrogate fallback disabled",
                    self.relationship_label,
                    self.surrogate_name,
                    len(matches),
                )
                self._surrogate = UserResolution("unresolved")
        return self._surrogate

    def resolve_name(self, display_name: str) -> UserResolution:
        """Resolve a display name without entity context.

        Answers are cached per name; a lookup that failed is retried on the
        next call.
        """
        name = (display_name or "").strip()
        if name in self._cache:
            return self._cache[name]

        matches = self._lookup(name) if name else []
        if matches is not None and len(matches) == 1:
            resolution = UserResolution("match", matches[0])
        elif matches is not None and len(matches) > 1:
            resolution = UserResolution("ambiguous")
        else:
            resolution = self._resolve_surrogate()
            if self._surrogate is None:
                return resolution

        if matches is not None:
            self._cache[name] = resolution
        return resolution

    def resolve(self, display_name: str, entity_id: str) -> UserResolution:
        """Resolve a display name for one entity, warning when nobody is assigned."""
        resolution = self.resolve_name(display_name)

        match resolution.source:
            case "ambiguous":
                message = (
                    f"{entity_id}: {self.relationship_label} {display_name!r} matches several users; "
                    f"relationship left unset"
                )
                logger.warning(message)
                self.warnings.append(message)
            case "unresolved":
                message = (
                    f"{entity_id}: {self.relationship_label} {display_name!r} not found and no usable "
                    f"surrogate; relationship left unset"
                )
                logger.warning(message)
                self.warnings.append(message)
            case "surrogate":
                logger.info(
                    "%s: %s %r not found, using surrogate %r",
                    entity_id,
                    self.relationship_label,
                    display_name,
                    self.surrogate_name,
                )
        return resolution

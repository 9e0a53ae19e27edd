"""Record models exchanged between the migration phases and the target client."""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from itsm_migration.mappings import target_model


class DiffEntry(BaseModel):
    """One row of the Diff Table: legacy identifier to its target counterpart."""

    model_config = ConfigDict(frozen=True)

    previous_id: str
    current_id: str
    current_ref: str


class ActivityLogRecord(BaseModel):
    """A comment/log row from the activity log export."""

    related_id: str
    log_type: Literal["UserComment", "AnalystComment"]
    entered_by: str = ""
    entered_date: datetime | None = None
    comment: str = ""
    is_private: bool = False


def _new_id() -> str:
    return str(uuid4())


class UserCommentChild(BaseModel):
    """A new end-user comment created inside a projection."""

    object_class: ClassVar[str] = target_model.USER_COMMENT_CLASS
    relationship: ClassVar[str] = target_model.HAS_USER_COMMENT

    kind: Literal["user_comment"] = "user_comment"
    id: str = Field(default_factory=_new_id)
    comment: str = ""
    entered_by: str = ""
    entered_date: datetime | None = None

    def properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "Id": self.id,
            "DisplayName": self.id,
            "Comment": self.comment,
            "EnteredBy": self.entered_by,
        }
        if self.entered_date is not None:
            props["EnteredDate"] = self.entered_date
        return props


class AnalystCommentChild(UserCommentChild):
    """A new analyst comment; carries the privacy flag."""

    object_class: ClassVar[str] = target_model.ANALYST_COMMENT_CLASS
    relationship: ClassVar[str] = target_model.HAS_ANALYST_COMMENT

    kind: Literal["analyst_comment"] = "analyst_comment"  # type: ignore[assignment]
    is_private: bool = False

    def properties(self) -> dict[str, Any]:
        props = super().properties()
        props["IsPrivate"] = self.is_private
        return props


class AttachmentChild(BaseModel):
    """An already created attachment object to be linked to the seed."""

    object_class: ClassVar[str] = target_model.ATTACHMENT_CLASS
    relationship: ClassVar[str] = target_model.HAS_ATTACHMENT

    kind: Literal["attachment"] = "attachment"
    ref: str

    def properties(self) -> dict[str, Any]:
        return {}


ProjectionChild = Annotated[
    UserCommentChild | AnalystCommentChild | AttachmentChild,
    Field(discriminator="kind"),
]


class Projection(BaseModel):
    """An existing parent object plus children written in one atomic commit."""

    seed: str
    seed_class: str
    children: list[ProjectionChild] = Field(default_factory=list)

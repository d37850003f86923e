"""Pydantic models for provider change feeds."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class AddedRecord(BaseModel):
    """An entity appeared in the mailbox."""

    kind: Literal["added"] = "added"
    entity_id: str = Field(default=..., description="Identifier of the added entity")
    checkpoint: str | None = Field(default=None, description="Feed position of this record")
    meta: dict[str, Any] = Field(
        default_factory=dict, description="Provider metadata such as labels or thread id"
    )


class DeletedRecord(BaseModel):
    """An entity was removed from the mailbox."""

    kind: Literal["deleted"] = "deleted"
    entity_id: str = Field(default=..., description="Identifier of the deleted entity")
    checkpoint: str | None = Field(default=None, description="Feed position of this record")


class UpdatedRecord(BaseModel):
    """An existing entity changed, e.g. labels added or removed."""

    kind: Literal["updated"] = "updated"
    entity_id: str = Field(default=..., description="Identifier of the updated entity")
    checkpoint: str | None = Field(default=None, description="Feed position of this record")
    changed_fields: list[str] = Field(
        default_factory=list, description="Names of the fields that changed"
    )


ChangeRecord = Annotated[
    Union[AddedRecord, DeletedRecord, UpdatedRecord],
    Field(discriminator="kind"),
]


class ChangeFeedPage(BaseModel):
    """One page of a provider change feed."""

    records: list[ChangeRecord] = Field(
        default_factory=list, description="Change records in feed order"
    )
    next_checkpoint: str | None = Field(
        default=None, description="Checkpoint to resume from after this page"
    )
    has_more: bool = Field(default=False, description="Whether unfetched pages remain")

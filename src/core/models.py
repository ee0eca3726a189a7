"""Dataclasses and enums shared by the backends, panes and operation engine.

Includes the closed ItemType variant, source profiles, plugin metadata,
pending operations and their per-item outcome reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from core.errors import CommanderError, ValidationError
from core.paths import PARENT

Content = Union[str, bytes]


class ItemType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    BUCKET = "bucket"
    TABLE = "table"
    DATASET = "dataset"

    @property
    def is_container(self) -> bool:
        return _CONTAINER[self]


# Exhaustive over ItemType; a new member without an entry fails loudly.
_CONTAINER: Dict[ItemType, bool] = {
    ItemType.FILE: False,
    ItemType.DIRECTORY: True,
    ItemType.BUCKET: True,
    ItemType.TABLE: False,
    ItemType.DATASET: True,
}


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "Side":
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


@dataclass(frozen=True)
class SourceProfile:
    """Named connection to one backend instance.

    `config` keys are backend specific and declared by the backend's
    PluginMetadata.config_fields.
    """

    id: str
    display_name: str
    backend_id: str
    config: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "backendId": self.backend_id,
            "config": dict(self.config),
        }


@dataclass(frozen=True)
class PluginMetadata:
    id: str
    display_name: str
    description: str
    config_fields: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "description": self.description,
            "configFields": list(self.config_fields),
        }


@dataclass(frozen=True)
class Item:
    """One listed entry. `id` is unique within a (profile, path) listing."""

    id: str
    name: str
    type: ItemType
    size_bytes: int = 0
    modified_at: Optional[datetime] = None
    extension: Optional[str] = None

    @classmethod
    def parent_link(cls) -> "Item":
        return cls(id=PARENT, name=PARENT, type=ItemType.DIRECTORY)

    @property
    def is_parent_link(self) -> bool:
        return self.name == PARENT

    @property
    def is_container(self) -> bool:
        return self.type.is_container

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "sizeBytes": self.size_bytes,
            "modifiedAt": self.modified_at.isoformat() if self.modified_at else None,
            "extension": self.extension,
        }


class OperationKind(str, Enum):
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"


@dataclass
class Operation:
    """A copy/move/delete request between initiation and confirmation.

    Only `target_path` is meant to be edited while pending. DELETE carries
    no target.
    """

    kind: OperationKind
    items: Tuple[Item, ...]
    source_profile_id: str
    source_path: str
    target_profile_id: Optional[str] = None
    target_path: Optional[str] = None

    def __post_init__(self) -> None:
        self.items = tuple(self.items)
        if not self.items:
            raise ValidationError("Operation needs at least one item")
        if any(item.is_parent_link for item in self.items):
            raise ValidationError("'..' cannot be part of an operation")
        if self.kind is OperationKind.DELETE:
            self.target_profile_id = None
            self.target_path = None

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.items]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "items": [item.to_dict() for item in self.items],
            "sourceProfileId": self.source_profile_id,
            "sourcePath": self.source_path,
            "targetProfileId": self.target_profile_id,
            "targetPath": self.target_path,
        }


@dataclass(frozen=True)
class BatchResult:
    """Per-item report of a bulk backend call."""

    succeeded: Tuple[str, ...] = ()
    failed: Mapping[str, CommanderError] = field(default_factory=dict)


class OutcomeStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationResult:
    kind: OperationKind
    status: OutcomeStatus
    succeeded: Tuple[str, ...]
    errors: Dict[str, CommanderError]

    @classmethod
    def from_outcomes(
        cls,
        kind: OperationKind,
        item_ids: Sequence[str],
        outcomes: Mapping[str, Optional[CommanderError]],
    ) -> "OperationResult":
        # Walk the original item order so reports never depend on completion order.
        succeeded = tuple(i for i in item_ids if outcomes.get(i) is None)
        errors = {i: outcomes[i] for i in item_ids if outcomes.get(i) is not None}

        if not errors:
            status = OutcomeStatus.OK
        elif succeeded:
            status = OutcomeStatus.PARTIAL
        else:
            status = OutcomeStatus.FAILED
        return cls(kind=kind, status=status, succeeded=succeeded, errors=errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "succeeded": list(self.succeeded),
            "errors": {i: f"{e.code}: {e}" for i, e in self.errors.items()},
        }

"""Tabular warehouse reference backend.

Two levels only: datasets at the root, tables inside a dataset. Reading a
table yields a JSON document {"columns": [...], "rows": [[...], ...]};
writing accepts that document or a JSON list of objects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence, Tuple

from core.errors import NotFoundError, PermissionDeniedError, ReadOnlyError, UnreadableError, ValidationError
from core.models import Content, Item, ItemType, PluginMetadata, SourceProfile
from core.paths import ROOT, join_path, normalize_path, split_posix


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Table:
    columns: List[str]
    rows: List[List[Any]]
    modified_at: datetime = field(default_factory=_now)

    def serialize(self) -> str:
        return json.dumps({"columns": self.columns, "rows": self.rows}, ensure_ascii=False)


@dataclass
class _Dataset:
    tables: Dict[str, _Table] = field(default_factory=dict)
    modified_at: datetime = field(default_factory=_now)


def parse_rows(content: Content) -> Tuple[List[str], List[List[Any]]]:
    """Parse a table payload into (columns, rows)."""
    text = content.decode("utf-8") if isinstance(content, bytes) else content
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Table payload is not valid JSON: {e}") from e

    if isinstance(doc, dict):
        columns, rows = doc.get("columns"), doc.get("rows")
        if not isinstance(columns, list) or not isinstance(rows, list):
            raise ValidationError("Table document needs 'columns' and 'rows' lists")
        if any(not isinstance(r, list) or len(r) != len(columns) for r in rows):
            raise ValidationError("Every row must be a list matching the columns")
        return [str(c) for c in columns], [list(r) for r in rows]

    if isinstance(doc, list) and all(isinstance(r, dict) for r in doc):
        columns: List[str] = []
        for record in doc:
            for key in record:
                if key not in columns:
                    columns.append(key)
        return columns, [[record.get(c) for c in columns] for record in doc]

    raise ValidationError("Table payload must be a table document or a list of objects")


class WarehouseBackend:
    metadata = PluginMetadata(
        id="warehouse",
        display_name="Data Warehouse",
        description="Datasets and tables (in-memory reference)",
        config_fields=("project",),
    )

    def __init__(self) -> None:
        self._projects: Dict[str, Dict[str, _Dataset]] = {}

    def seed_table(self, profile: SourceProfile, dataset: str, table: str, records: Sequence[Dict[str, Any]]) -> None:
        columns, rows = parse_rows(json.dumps(list(records)))
        ds = self._datasets(profile).setdefault(dataset, _Dataset())
        ds.tables[table] = _Table(columns=columns, rows=rows)

    async def list_items(self, *, profile: SourceProfile, path: str) -> List[Item]:
        parts = split_posix(normalize_path(path))
        datasets = self._datasets(profile)

        if not parts:
            return [
                Item(id=ROOT + name, name=name, type=ItemType.DATASET, modified_at=ds.modified_at)
                for name, ds in sorted(datasets.items())
            ]

        if len(parts) == 1 and parts[0] in datasets:
            ds = datasets[parts[0]]
            tables = [
                Item(
                    id=join_path(ROOT + parts[0], name),
                    name=name,
                    type=ItemType.TABLE,
                    size_bytes=len(t.serialize().encode("utf-8")),
                    modified_at=t.modified_at,
                )
                for name, t in sorted(ds.tables.items())
            ]
            return [Item.parent_link(), *tables]

        raise NotFoundError(f"Not a dataset: {normalize_path(path)}")

    async def read_item(self, *, profile: SourceProfile, item_id: str) -> Content:
        parts = split_posix(normalize_path(item_id))
        datasets = self._datasets(profile)
        if len(parts) == 1 and parts[0] in datasets:
            raise UnreadableError(f"Cannot read a dataset: {parts[0]}")
        return self._table(datasets, parts).serialize()

    async def write_item(self, *, profile: SourceProfile, item_id: str, content: Content) -> None:
        self._check_writable(profile)
        parts = split_posix(normalize_path(item_id))
        if len(parts) != 2:
            raise ReadOnlyError("Tables live directly under a dataset")

        datasets = self._datasets(profile)
        ds = datasets.get(parts[0])
        if ds is None:
            raise NotFoundError(f"Dataset not found: {parts[0]}")

        columns, rows = parse_rows(content)
        ds.tables[parts[1]] = _Table(columns=columns, rows=rows)
        ds.modified_at = _now()

    async def delete_item(self, *, profile: SourceProfile, item_id: str) -> None:
        self._check_writable(profile)
        parts = split_posix(normalize_path(item_id))
        datasets = self._datasets(profile)

        if not parts:
            raise PermissionDeniedError("Cannot delete the project root")
        if len(parts) == 1:
            if datasets.pop(parts[0], None) is None:
                raise NotFoundError(f"Dataset not found: {parts[0]}")
            return

        self._table(datasets, parts)
        del datasets[parts[0]].tables[parts[1]]

    async def make_directory(self, *, profile: SourceProfile, path: str, name: str) -> Item:
        self._check_writable(profile)
        if split_posix(normalize_path(path)):
            raise ReadOnlyError("Datasets can only be created at the project root")

        item_id = join_path(ROOT, name)
        datasets = self._datasets(profile)
        if name in datasets:
            raise ValidationError(f"Dataset already exists: {name}")
        ds = datasets[name] = _Dataset()
        return Item(id=item_id, name=name, type=ItemType.DATASET, modified_at=ds.modified_at)

    def _datasets(self, profile: SourceProfile) -> Dict[str, _Dataset]:
        return self._projects.setdefault(profile.id, {})

    def _table(self, datasets: Dict[str, _Dataset], parts: Tuple[str, ...]) -> _Table:
        if len(parts) == 2 and parts[0] in datasets:
            table = datasets[parts[0]].tables.get(parts[1])
            if table is not None:
                return table
        raise NotFoundError(f"Table not found: {'/'.join(parts)}")

    def _check_writable(self, profile: SourceProfile) -> None:
        if (profile.config.get("read_only") or "").strip().lower() in {"1", "true", "yes", "y", "on"}:
            raise ReadOnlyError(f"Profile {profile.id} is read-only")

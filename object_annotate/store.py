"""AnnotationStore — one SQLAlchemy-mapped annotation table per destination.

A store owns the engine for its destination and a record class generated
for the table's column list. All reads and writes for that destination go
through it; query semantics are SQLAlchemy's.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence as SequenceT

from sqlalchemy import DateTime, Integer, Sequence, String, Text, select
from sqlalchemy.orm import mapped_column

from object_annotate.config import DestinationSettings
from object_annotate.database import make_base, make_engine, make_session_factory
from object_annotate.errors import AnnotationConfigError

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("event", "attr", "old_val", "new_val", "via", "comment", "expire_time")
MANDATORY_COLUMNS = ("class", "object_id")
TIME_COLUMN = "note_time"

# "class" is a keyword, so the mapped attribute behind that column is obj_class
_ATTR_FOR_COLUMN = {"class": "obj_class"}

# Unique suffixes for generated record class names
_suffix = itertools.count(1)


@dataclass(frozen=True)
class Destination:
    """A (connection string, table name) pair."""

    dsn: str
    table: str

    @classmethod
    def from_settings(cls, settings: DestinationSettings) -> "Destination":
        if not settings.dsn or not settings.table:
            raise AnnotationConfigError(
                f"Incomplete destination: dsn={settings.dsn!r} table={settings.table!r}"
            )
        return cls(dsn=settings.dsn, table=settings.table)

    def __str__(self) -> str:
        return f"{self.dsn}#{self.table}"


def _check_columns(columns: Iterable[str]) -> tuple[str, ...]:
    columns = tuple(columns)
    reserved = {"id", TIME_COLUMN, *MANDATORY_COLUMNS}
    clashes = reserved.intersection(columns)
    if clashes:
        raise AnnotationConfigError(
            f"Free-form columns may not include {sorted(clashes)}"
        )
    if len(set(columns)) != len(columns):
        raise AnnotationConfigError(f"Duplicate free-form columns: {list(columns)}")
    return columns


def _record_as_dict(self) -> Dict[str, Any]:
    """Column name → value for every mapped column of this record."""
    return {
        name: getattr(self, _ATTR_FOR_COLUMN.get(name, name))
        for name in type(self).__annotation_columns__
    }


def _record_repr(self) -> str:
    return f"<{type(self).__name__} #{self.id} [{self.obj_class}:{self.object_id}]>"


class AnnotationStore:
    """Storage proxy bound to exactly one destination and column list."""

    def __init__(
        self,
        destination: Destination,
        *,
        db_user: Optional[str] = None,
        db_pass: Optional[str] = None,
        sequence: Optional[str] = None,
        columns: Optional[SequenceT[str]] = None,
        set_time: bool = False,
    ) -> None:
        self.destination = destination
        self.sequence = sequence
        self.set_time = set_time
        # An override list replaces the defaults entirely
        self.free_columns = _check_columns(DEFAULT_COLUMNS if columns is None else columns)
        self.name = "Construct_%04x" % next(_suffix)

        self.engine = make_engine(destination.dsn, db_user, db_pass)
        self._session_factory = make_session_factory(self.engine)
        self._base = make_base()
        self.record_class = self._build_record_class()

        logger.debug(
            "Built annotation store %s for %s with columns %s",
            self.name, destination, list(self.column_names),
        )

    @classmethod
    def from_settings(cls, settings: DestinationSettings) -> "AnnotationStore":
        return cls(
            Destination.from_settings(settings),
            db_user=settings.db_user,
            db_pass=settings.db_pass,
            sequence=settings.sequence,
            columns=settings.columns,
            set_time=settings.set_time,
        )

    @property
    def column_names(self) -> tuple[str, ...]:
        """Every column in table order: id, mandatory, note_time?, free-form."""
        names = ["id", *MANDATORY_COLUMNS]
        if self.set_time:
            names.append(TIME_COLUMN)
        names.extend(self.free_columns)
        return tuple(names)

    @property
    def table(self):
        return self.record_class.__table__

    def _build_record_class(self) -> type:
        if self.sequence:
            id_column = mapped_column(Integer, Sequence(self.sequence), primary_key=True)
        else:
            id_column = mapped_column(Integer, primary_key=True)

        attrs: Dict[str, Any] = {
            "__tablename__": self.destination.table,
            "__module__": __name__,
            "__annotation_columns__": self.column_names,
            "id": id_column,
            "obj_class": mapped_column("class", String(255), nullable=False),
            "object_id": mapped_column(String(255), nullable=False),
            "as_dict": _record_as_dict,
            "__repr__": _record_repr,
        }
        if self.set_time:
            attrs[TIME_COLUMN] = mapped_column(DateTime, nullable=True)
        for column in self.free_columns:
            attrs[column] = mapped_column(Text, nullable=True)

        return type(self.name, (self._base,), attrs)

    def _attrs(self, mapping: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(mapping) - set(self.column_names)
        if unknown:
            raise AnnotationConfigError(
                f"{self.name} has no columns {sorted(unknown)}; "
                f"columns are {list(self.column_names)}"
            )
        return {_ATTR_FOR_COLUMN.get(k, k): v for k, v in mapping.items()}

    def create(self, fields: Mapping[str, Any]) -> Any:
        """Insert one record and commit it immediately."""
        record = self.record_class(**self._attrs(fields))
        with self._session_factory() as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        logger.debug("Stored annotation %s in %s", record.id, self.destination)
        return record

    def search(self, criteria: Mapping[str, Any] | None = None) -> List[Any]:
        """Return every record equal on all given columns. No order is imposed."""
        stmt = select(self.record_class).filter_by(**self._attrs(criteria or {}))
        with self._session_factory() as session:
            records = list(session.scalars(stmt).all())
        logger.debug("Search %s in %s matched %d", dict(criteria or {}), self.destination, len(records))
        return records

    def create_table(self) -> None:
        """Create the bound table if it does not exist yet."""
        self._base.metadata.create_all(self.engine)

    def drop_table(self) -> None:
        self._base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release pooled connections held by this store's engine."""
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"<AnnotationStore {self.name} {self.destination}>"

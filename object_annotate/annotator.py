"""Annotator — the annotate/search/accessor operations a consumer gets.

An Annotator closes over a store, the label written to the ``class``
column and the strategy that turns an instance into its ``object_id``.
``install`` attaches its operations to a class (or to one standalone
object); ``setup`` and ``annotated`` do the whole configuration in one go.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy.ext.hybrid import hybrid_method

from object_annotate.config import resolve_settings
from object_annotate.errors import AnnotationConfigError, IdentifierError
from object_annotate.registry import AnnotationRegistry, default_registry
from object_annotate.store import TIME_COLUMN, AnnotationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixedId:
    """Use ``value`` as the object_id of every annotation (classless mode)."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise AnnotationConfigError("FixedId needs a non-empty value")


IdStrategy = Union[str, FixedId, Callable[[Any], Any]]


def moniker(cls: type) -> str:
    """Default label for a class: its name, lower-cased."""
    return cls.__name__.lower()


class Annotator:
    def __init__(self, store: AnnotationStore, obj_class: str, id_attr: IdStrategy = "id"):
        if not obj_class:
            raise AnnotationConfigError("obj_class must be a non-empty label")
        if not (isinstance(id_attr, (str, FixedId)) or callable(id_attr)) or id_attr == "":
            raise AnnotationConfigError(f"Unusable id_attr: {id_attr!r}")
        self.store = store
        self.obj_class = obj_class
        self.id_attr = id_attr

    def object_id(self, obj: Any) -> str:
        """Resolve the identifier stored as ``object_id`` for obj.

        A FixedId is returned as-is. A string names a method (or plain
        attribute) of obj; any other callable is called with obj. Empty
        results raise IdentifierError.
        """
        if isinstance(self.id_attr, FixedId):
            return self.id_attr.value
        if isinstance(self.id_attr, str):
            value = getattr(obj, self.id_attr, None)
            if callable(value):
                value = value()
        else:
            value = self.id_attr(obj)
        if not value:
            raise IdentifierError(f"couldn't get id for {obj!r} via {self.id_attr!r}")
        return str(value)

    def annotate(self, obj: Any, fields: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Store one annotation about obj.

        Only the store's free-form columns are taken from fields; other keys
        are dropped. Nothing is returned.
        """
        given = {**(fields or {}), **kwargs}
        attrs = {k: given[k] for k in self.store.free_columns if k in given}
        dropped = set(given) - set(attrs)
        if dropped:
            logger.debug("Ignoring non-annotation fields %s", sorted(dropped))

        values: Dict[str, Any] = {
            "class": self.obj_class,
            "object_id": self.object_id(obj),
        }
        if self.store.set_time:
            values[TIME_COLUMN] = datetime.now(timezone.utc)
        values.update(attrs)

        self.store.create(values)
        logger.info("Annotated %s:%s (%s)", self.obj_class, values["object_id"], attrs.get("event", "-"))

    def search(self, obj: Any = None, criteria: Mapping[str, Any] | None = None) -> List[Any]:
        """Find annotations for this label, narrowed to obj when one is given.

        A caller-supplied ``object_id`` wins over the one resolved from obj
        and is compared as text, the way annotate stores it.
        """
        query = dict(criteria or {})
        query["class"] = self.obj_class
        if "object_id" in query:
            query["object_id"] = str(query["object_id"])
        elif obj is not None:
            query["object_id"] = self.object_id(obj)
        return self.store.search(query)

    def annotation_class(self) -> AnnotationStore:
        return self.store

    def __repr__(self) -> str:
        return f"<Annotator {self.obj_class!r} via {self.id_attr!r} → {self.store.name}>"


def install(target: Any, annotator: Annotator) -> None:
    """Attach annotate, search_annotations and annotation_class to target.

    For a class, ``search_annotations`` works on instances (scoped to that
    instance) and on the class itself (every instance of the label). Any
    other object gets the three operations bound to itself.
    """
    if isinstance(target, type):
        def annotate(self, fields=None, **kwargs):
            annotator.annotate(self, fields, **kwargs)

        def search_annotations(self_or_cls, criteria=None):
            obj = None if isinstance(self_or_cls, type) else self_or_cls
            return annotator.search(obj, criteria)

        annotate.__doc__ = Annotator.annotate.__doc__
        search_annotations.__doc__ = Annotator.search.__doc__
        target.annotate = annotate
        target.search_annotations = hybrid_method(search_annotations)
        target.annotation_class = staticmethod(annotator.annotation_class)
        target.__annotator__ = annotator
    else:
        target.annotate = functools.partial(annotator.annotate, target)
        target.search_annotations = functools.partial(annotator.search, target)
        target.annotation_class = annotator.annotation_class
        target.__annotator__ = annotator


def setup(
    target: Any,
    *,
    obj_class: Optional[str] = None,
    id_attr: IdStrategy = "id",
    registry: Optional[AnnotationRegistry] = None,
    **destination: Any,
) -> Annotator:
    """Configure annotations for a class or a standalone object.

    ``destination`` takes dsn, table, db_user, db_pass, sequence, columns
    and set_time; anything not given comes from the loaded configuration.
    """
    settings = resolve_settings(**destination)
    store = (registry if registry is not None else default_registry).class_for(settings)

    if obj_class is None:
        obj_class = moniker(target if isinstance(target, type) else type(target))
    annotator = Annotator(store, obj_class, id_attr)
    install(target, annotator)
    logger.debug("Set up %r on %r", annotator, target)
    return annotator


def annotated(**options: Any) -> Callable[[type], type]:
    """Class decorator form of ``setup``."""
    def decorate(cls: type) -> type:
        setup(cls, **options)
        return cls

    return decorate

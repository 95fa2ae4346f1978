"""object_annotate — mix database-backed annotations into any class.

    @annotated(dsn="sqlite:///notes.db", table="annotations")
    class Widget:
        def id(self):
            return self.pk

    Widget(...).annotate({"event": "created", "comment": "first"})
"""

from object_annotate.annotator import Annotator, FixedId, annotated, install, moniker, setup
from object_annotate.errors import AnnotationConfigError, AnnotationError, IdentifierError
from object_annotate.registry import AnnotationRegistry, default_registry
from object_annotate.store import DEFAULT_COLUMNS, AnnotationStore, Destination

__version__ = "0.1.0"

__all__ = [
    "Annotator",
    "FixedId",
    "annotated",
    "install",
    "moniker",
    "setup",
    "AnnotationError",
    "AnnotationConfigError",
    "IdentifierError",
    "AnnotationRegistry",
    "default_registry",
    "AnnotationStore",
    "Destination",
    "DEFAULT_COLUMNS",
]

"""Annotation errors.

Storage errors from SQLAlchemy are not wrapped; they reach the caller as-is.
"""


class AnnotationError(Exception):
    """Base exception for annotation setup and use."""

    pass


class AnnotationConfigError(AnnotationError):
    """Destination, label or column configuration could not be determined."""

    pass


class IdentifierError(AnnotationError):
    """The configured identifier strategy produced an empty value."""

    pass

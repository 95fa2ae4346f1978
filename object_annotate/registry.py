"""AnnotationRegistry — at most one store per destination.

Stores are built on first use and kept for the life of the registry.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from object_annotate.config import DestinationSettings
from object_annotate.store import AnnotationStore, Destination

logger = logging.getLogger(__name__)

BuildFn = Callable[[Destination], AnnotationStore]


class AnnotationRegistry:
    """Destination → AnnotationStore memo.

    Lookup, build and register happen under one lock, so concurrent first
    use of a destination still builds a single store.
    """

    def __init__(self) -> None:
        self._stores: Dict[Destination, AnnotationStore] = {}
        self._lock = threading.Lock()

    def resolve(self, destination: Destination, build_fn: BuildFn) -> AnnotationStore:
        """Return the store for a destination, building it with build_fn if needed."""
        with self._lock:
            store = self._stores.get(destination)
            if store is not None:
                logger.debug("Reusing %s for %s", store.name, destination)
                return store
            store = build_fn(destination)
            self._stores[destination] = store
            logger.info("Registered annotation store %s for %s", store.name, destination)
            return store

    def class_for(self, settings: DestinationSettings) -> AnnotationStore:
        """Return the store for the destination described by settings.

        Only dsn and table identify a destination; the remaining settings
        apply when the store is first built.
        """
        destination = Destination.from_settings(settings)
        return self.resolve(destination, lambda dest: AnnotationStore.from_settings(settings))

    def get(self, destination: Destination) -> Optional[AnnotationStore]:
        return self._stores.get(destination)

    def destinations(self) -> List[Destination]:
        return list(self._stores)

    def clear(self, dispose: bool = True) -> None:
        """Forget every store (for testing), disposing engines by default."""
        with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()
        if dispose:
            for store in stores:
                store.dispose()

    def __contains__(self, destination: object) -> bool:
        return destination in self._stores

    def __len__(self) -> int:
        return len(self._stores)


default_registry = AnnotationRegistry()

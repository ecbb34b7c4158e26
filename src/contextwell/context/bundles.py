"""Bundles: named, pre-compiled groups of slices."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Bundle:
    """A named group of slice ids with optional default parameters.

    Slice ids are not validated against the slice catalog; an unknown id
    surfaces as an error result when the bundle is resolved.
    """

    id: str
    description: str
    slice_ids: tuple[str, ...]
    slice_params: dict[str, dict[str, Any]] = field(default_factory=dict)
    estimated_tokens: int = 0


BUILTIN_BUNDLES: tuple[Bundle, ...] = (
    Bundle(
        id="@database-work",
        description="Database development context",
        slice_ids=("db-schema", "db-connections", "app-info", "foundation"),
        estimated_tokens=630,
    ),
    Bundle(
        id="@testing",
        description="Testing context with pytest",
        slice_ids=("app-info", "db-schema", "routes", "pytest-core"),
        estimated_tokens=800,
    ),
    Bundle(
        id="@debug",
        description="Debugging context",
        slice_ids=("last-error", "browser-logs", "app-info"),
        slice_params={"browser-logs": {"entries": 20}},
        estimated_tokens=450,
    ),
    Bundle(
        id="@new-feature",
        description="Full context for new feature development",
        slice_ids=("foundation", "app-info", "db-schema", "routes", "commands"),
        estimated_tokens=1100,
    ),
)


class BundleCatalog:
    """Built-in bundles plus registered ones, minus the excluded ids.

    Usage:
        catalog = BundleCatalog(exclude=config.bundles.exclude)
        catalog.register(Bundle(id="@billing", ...))
        catalog.get("@debug")
    """

    def __init__(self, exclude: Iterable[str] = ()) -> None:
        self.exclude = frozenset(exclude)
        self._registered: list[Bundle] = []
        self._bundles: dict[str, Bundle] | None = None
        self._lock = threading.Lock()

    def register(self, bundle: Bundle) -> None:
        """Add a bundle, replacing any bundle with the same id."""
        with self._lock:
            self._registered.append(bundle)
            self._bundles = None

    def all(self) -> dict[str, Bundle]:
        bundles = self._bundles
        if bundles is None:
            with self._lock:
                if self._bundles is None:
                    self._bundles = self._build()
                bundles = self._bundles
        return bundles

    def get(self, bundle_id: str) -> Bundle | None:
        return self.all().get(bundle_id)

    def has(self, bundle_id: str) -> bool:
        return bundle_id in self.all()

    def invalidate(self) -> None:
        with self._lock:
            self._bundles = None

    def _build(self) -> dict[str, Bundle]:
        bundles = {b.id: b for b in BUILTIN_BUNDLES}
        for bundle in self._registered:
            bundles[bundle.id] = bundle
        return {bid: b for bid, b in bundles.items() if bid not in self.exclude}

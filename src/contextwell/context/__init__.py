"""Context slices, bundles and their resolution into agent-ready text."""

from contextwell.context.bundles import BUILTIN_BUNDLES, Bundle, BundleCatalog
from contextwell.context.manifest import Manifest
from contextwell.context.resolver import ContextResolver
from contextwell.context.resolvers import GuidelineSliceResolver, ToolSliceResolver
from contextwell.context.slices import (
    DYNAMIC_SLICES,
    ContextSlice,
    GuidelineSource,
    SliceCatalog,
    SliceResult,
    ToolSource,
    slugify,
)

__all__ = [
    "BUILTIN_BUNDLES",
    "DYNAMIC_SLICES",
    "Bundle",
    "BundleCatalog",
    "ContextResolver",
    "ContextSlice",
    "GuidelineSliceResolver",
    "GuidelineSource",
    "Manifest",
    "SliceCatalog",
    "SliceResult",
    "ToolSliceResolver",
    "ToolSource",
    "slugify",
]

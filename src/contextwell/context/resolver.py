"""Context resolution: expand bundles, resolve slices, format the response."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from contextwell.context.bundles import BundleCatalog
from contextwell.context.resolvers import GuidelineSliceResolver, ToolSliceResolver
from contextwell.context.slices import GuidelineSource, SliceCatalog, SliceResult, ToolSource
from contextwell.foundation.errors import EmptyRequestError

logger = logging.getLogger(__name__)


class ContextResolver:
    """Turns a request for slices and bundles into one block of text.

    Usage:
        resolver.resolve_request({"get-config": {"key": "app.name"}}, ["@debug"])

    Explicit slices come first and keep their parameters; bundle slices are
    appended in bundle order only if not already requested. Every slice
    resolves exactly once and independently, so one failure never hides the
    others.
    """

    def __init__(
        self,
        slices: SliceCatalog,
        bundles: BundleCatalog,
        guideline_resolver: GuidelineSliceResolver,
        tool_resolver: ToolSliceResolver,
    ) -> None:
        self.slices = slices
        self.bundles = bundles
        self.guideline_resolver = guideline_resolver
        self.tool_resolver = tool_resolver

    def resolve(
        self,
        slices: Mapping[str, dict[str, Any]] | None = None,
        bundles: Iterable[str] = (),
    ) -> dict[str, SliceResult]:
        requests = self.expand(slices or {}, bundles)
        return {slice_id: self.resolve_slice(slice_id, params) for slice_id, params in requests.items()}

    def expand(
        self,
        slices: Mapping[str, dict[str, Any]],
        bundles: Iterable[str],
    ) -> dict[str, dict[str, Any]]:
        """Merge bundle slices into the explicit request, deduplicating by id."""
        merged = dict(slices)
        for bundle_id in bundles:
            bundle = self.bundles.get(bundle_id)
            if bundle is None:
                logger.debug("Ignoring unknown bundle %s", bundle_id)
                continue
            for slice_id in bundle.slice_ids:
                if slice_id not in merged:
                    merged[slice_id] = dict(bundle.slice_params.get(slice_id, {}))
        return merged

    def resolve_slice(self, slice_id: str, params: dict[str, Any]) -> SliceResult:
        s = self.slices.get(slice_id)
        if s is None:
            return SliceResult(slice_id, f"Unknown slice: {slice_id}", is_error=True)

        if isinstance(s.source, ToolSource):
            result = self.tool_resolver.resolve(s, params)
        elif isinstance(s.source, GuidelineSource):
            result = self.guideline_resolver.resolve(s)
        else:
            result = SliceResult(slice_id, f"Slice '{slice_id}' has no resolver configured.", is_error=True)

        if result.is_error:
            logger.debug("Slice %s failed: %s", slice_id, result.content)
        return result

    @staticmethod
    def format(results: Mapping[str, SliceResult]) -> str:
        sections = [
            f"=== {slice_id} ===\n{result.content}"
            for slice_id, result in results.items()
            if not result.is_error
        ]
        output = "\n\n".join(sections)

        failed = [slice_id for slice_id, result in results.items() if result.is_error]
        if failed:
            output += f"\n\n[failed: {', '.join(failed)}]"
        return output

    def resolve_request(self, slices: Any = None, bundles: Any = None) -> str:
        """Handle an inbound resolve call.

        Non-mapping parameter values are treated as no parameters.

        Raises:
            EmptyRequestError: If neither slices nor bundles are given.
        """
        normalized: dict[str, dict[str, Any]] = {}
        if isinstance(slices, Mapping):
            for slice_id, params in slices.items():
                normalized[str(slice_id)] = dict(params) if isinstance(params, Mapping) else {}
        bundle_ids = [str(b) for b in bundles] if isinstance(bundles, (list, tuple)) else []

        if not normalized and not bundle_ids:
            raise EmptyRequestError()

        return self.format(self.resolve(normalized, bundle_ids))

"""Plain-text listing of every slice and bundle an agent can request."""

from __future__ import annotations

from contextwell.context.bundles import Bundle, BundleCatalog
from contextwell.context.slices import ContextSlice, SliceCatalog

HEADER = "Available context (use resolve-context to load):"
BUNDLES_HEADER = "Bundles (pre-compiled):"


def format_slice_line(s: ContextSlice) -> str:
    tokens = "varies" if s.variable_cost else f"~{s.estimated_tokens}t"
    live = ", live" if s.is_dynamic else ""
    params = f" (param: {', '.join(s.params)})" if s.has_params() else ""
    return f"[{s.category}]  {s.id}{params} ({tokens}{live}) - {s.label}"


def format_bundle_line(b: Bundle) -> str:
    return f"{b.id} = {' + '.join(b.slice_ids)} (~{b.estimated_tokens}t) - {b.description}"


class Manifest:
    """Renders the slice and bundle catalogs, slices grouped by category."""

    def __init__(self, slices: SliceCatalog, bundles: BundleCatalog) -> None:
        self.slices = slices
        self.bundles = bundles

    def render(self) -> str:
        lines = [HEADER, ""]

        # dicts keep first-seen category order
        by_category: dict[str, list[ContextSlice]] = {}
        for s in self.slices.all().values():
            by_category.setdefault(s.category, []).append(s)
        for category_slices in by_category.values():
            lines.extend(format_slice_line(s) for s in category_slices)

        bundles = self.bundles.all()
        if bundles:
            lines.append("")
            lines.append(BUNDLES_HEADER)
            lines.extend(format_bundle_line(b) for b in bundles.values())

        return "\n".join(lines)

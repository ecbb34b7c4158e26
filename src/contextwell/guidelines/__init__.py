"""Static guidelines: markdown documents exposed as context slices."""

from contextwell.guidelines.store import Guideline, GuidelineStore

__all__ = ["Guideline", "GuidelineStore"]

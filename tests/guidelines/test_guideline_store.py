"""Tests for guideline discovery and parsing."""

from pathlib import Path

from contextwell.config import GuidelinesConfig
from contextwell.guidelines import GuidelineStore
from contextwell.guidelines.store import parse_guideline


class InvalidatedOnRelease:
    """Lock stand-in that clears the cache the moment it is released."""

    def __init__(self, target, attr: str) -> None:
        self.target = target
        self.attr = attr

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> bool:
        setattr(self.target, self.attr, None)
        return False


class TestParseGuideline:
    def test_frontmatter_description(self) -> None:
        guideline = parse_guideline("x", "---\ndescription: Hello\n---\n# Title\n\nbody text\n")
        assert guideline.description == "Hello"
        assert guideline.content == "# Title\n\nbody text"

    def test_token_estimate(self) -> None:
        """Roughly 1.3 tokens per word."""
        guideline = parse_guideline("x", " ".join(["word"] * 100))
        assert guideline.estimated_tokens == 130

    def test_no_frontmatter(self) -> None:
        guideline = parse_guideline("x", "just text")
        assert guideline.description is None
        assert guideline.content == "just text"

    def test_invalid_frontmatter_is_tolerated(self) -> None:
        guideline = parse_guideline("x", "---\n: [bad\n---\nbody")
        assert guideline.description is None
        assert guideline.content == "body"


class TestGuidelineStore:
    """Scanning packaged and workspace guidelines."""

    def test_builtin_guidelines(self, tmp_path: Path) -> None:
        store = GuidelineStore(tmp_path)
        keys = set(store.all_guidelines())
        assert {"foundation", "python/core", "pytest/core"} <= keys

    def test_workspace_guidelines_are_added(self, workspace: Path) -> None:
        store = GuidelineStore(workspace)
        guideline = store.get("project/conventions")
        assert guideline is not None
        assert guideline.description == "Shop conventions"
        assert "cents" in store.render("project/conventions")

    def test_workspace_overrides_builtin(self, tmp_path: Path) -> None:
        """A later source replaces an earlier key."""
        custom = tmp_path / ".contextwell" / "guidelines"
        custom.mkdir(parents=True)
        (custom / "foundation.md").write_text("Our own foundation.")

        assert GuidelineStore(tmp_path).render("foundation") == "Our own foundation."

    def test_builtin_can_be_disabled(self, workspace: Path) -> None:
        store = GuidelineStore(workspace, GuidelinesConfig(include_builtin=False))
        assert list(store.all_guidelines()) == ["project/conventions"]

    def test_render_unknown_key(self, tmp_path: Path) -> None:
        assert GuidelineStore(tmp_path).render("nope") is None

    def test_invalidate_rescans(self, tmp_path: Path) -> None:
        store = GuidelineStore(tmp_path, GuidelinesConfig(include_builtin=False, paths=["docs"]))
        assert store.all_guidelines() == {}

        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "new.md").write_text("fresh")
        assert store.all_guidelines() == {}

        store.invalidate()
        assert store.render("new") == "fresh"

    def test_scan_result_returned_despite_concurrent_invalidate(self, workspace: Path) -> None:
        """Clearing the cache as the lock is released does not lose the scan."""
        store = GuidelineStore(workspace, GuidelinesConfig(include_builtin=False))
        store._lock = InvalidatedOnRelease(store, "_guidelines")

        assert list(store.all_guidelines()) == ["project/conventions"]


"""Guideline discovery.

Guidelines are markdown files. The key of a guideline is its path relative
to the directory it was found in, without the suffix (``python/core``).
Optional YAML frontmatter supplies a ``description``:

    ---
    description: Core Python conventions
    ---
    # Python
    ...

Sources are scanned in order: the guidelines packaged with Contextwell, then
each configured workspace directory. A later source overrides an earlier key.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path

import yaml

from contextwell.config import GuidelinesConfig

logger = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).parent / "data"

_RE_FRONTMATTER = re.compile(r"^---\n(.*?)\n---\n?", re.DOTALL)

# Rough words-to-tokens ratio for English prose and code
TOKENS_PER_WORD = 1.3


@dataclass(frozen=True, slots=True)
class Guideline:
    key: str
    description: str | None
    estimated_tokens: int
    content: str


def parse_guideline(key: str, text: str) -> Guideline:
    """Split frontmatter from a guideline document."""
    description = None
    body = text
    match = _RE_FRONTMATTER.match(text)
    if match:
        body = text[match.end():]
        try:
            meta = yaml.safe_load(match.group(1)) or {}
        except yaml.YAMLError as e:
            logger.warning("Invalid frontmatter in guideline %s: %s", key, e)
            meta = {}
        if isinstance(meta, dict) and meta.get("description"):
            description = str(meta["description"])
    body = body.strip()
    return Guideline(
        key=key,
        description=description,
        estimated_tokens=round(len(body.split()) * TOKENS_PER_WORD),
        content=body,
    )


class GuidelineStore:
    """Lazily scanned, cached set of guidelines.

    Usage:
        store = GuidelineStore(workspace, config.guidelines)
        store.all_guidelines()   # key -> Guideline
        store.render("foundation")
    """

    def __init__(self, workspace: Path, config: GuidelinesConfig | None = None) -> None:
        self.workspace = Path(workspace)
        self.config = config or GuidelinesConfig()
        self._guidelines: dict[str, Guideline] | None = None
        self._lock = threading.Lock()

    def directories(self) -> list[Path]:
        dirs: list[Path] = []
        if self.config.include_builtin:
            dirs.append(BUILTIN_DIR)
        for entry in self.config.paths:
            path = Path(entry)
            dirs.append(path if path.is_absolute() else self.workspace / path)
        return dirs

    def all_guidelines(self) -> dict[str, Guideline]:
        guidelines = self._guidelines
        if guidelines is None:
            with self._lock:
                if self._guidelines is None:
                    self._guidelines = self._scan()
                guidelines = self._guidelines
        return guidelines

    def _scan(self) -> dict[str, Guideline]:
        guidelines: dict[str, Guideline] = {}
        for directory in self.directories():
            if not directory.is_dir():
                continue
            for path in sorted(directory.rglob("*.md")):
                key = path.relative_to(directory).with_suffix("").as_posix()
                try:
                    text = path.read_text(encoding="utf-8")
                except OSError as e:
                    logger.warning("Could not read guideline %s: %s", path, e)
                    continue
                guidelines[key] = parse_guideline(key, text)
        logger.debug("Loaded %d guidelines", len(guidelines))
        return guidelines

    def get(self, key: str) -> Guideline | None:
        return self.all_guidelines().get(key)

    def render(self, key: str) -> str | None:
        """Guideline content, or None if the key is unknown."""
        guideline = self.get(key)
        return guideline.content if guideline else None

    def invalidate(self) -> None:
        with self._lock:
            self._guidelines = None

"""
journal.py — Learning journal
==============================
``groot remember`` captures explanations and insights as Markdown files in
``.groot/journal/YYYY-MM-DD-<slug>.md`` so they read well in an editor and
diff cleanly under version control.  Entries are parsed back from the same
Markdown for ``--view``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from groot.paths import get_journal_dir

logger = logging.getLogger(__name__)

CAPTURED_FORMAT = "%A, %B %d, %Y %H:%M"
_FILENAME_RE    = re.compile(r"^(\d{4}-\d{2}-\d{2})-(.+)\.md$")


@dataclass
class JournalContext:
    phase:         Optional[str] = None
    activity:      Optional[str] = None
    curriculum_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.phase or self.activity or self.curriculum_id)


@dataclass
class JournalEntry:
    slug:           str
    title:          str
    content:        str
    captured_at:    datetime
    context:        Optional[JournalContext] = None
    takeaways:      list[str] = field(default_factory=list)
    related_topics: list[str] = field(default_factory=list)
    path:           Optional[Path] = None


@dataclass
class JournalListing:
    slug:  str
    title: str
    date:  str
    path:  Path


def generate_slug(title: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:50]


# ─── Markdown ────────────────────────────────────────────────────────────────

def format_entry_markdown(entry: JournalEntry) -> str:
    parts = [
        f"# {entry.title}\n\n",
        f"*Captured: {entry.captured_at.strftime(CAPTURED_FORMAT)}*\n\n",
    ]

    ctx = entry.context
    if ctx is not None and not ctx.is_empty():
        parts.append("---\n")
        if ctx.phase:
            parts.append(f"**Phase:** {ctx.phase}\n")
        if ctx.activity:
            parts.append(f"**Activity:** {ctx.activity}\n")
        if ctx.curriculum_id:
            parts.append(f"**Curriculum ID:** {ctx.curriculum_id}\n")
        parts.append("---\n\n")

    parts.append(f"## Content\n\n{entry.content}\n\n")

    if entry.takeaways:
        parts.append("## Key Takeaways\n\n")
        parts += [f"- {t}\n" for t in entry.takeaways]
        parts.append("\n")

    if entry.related_topics:
        parts.append("## Related Topics\n\n")
        parts += [f"- {t}\n" for t in entry.related_topics]
        parts.append("\n")

    return "".join(parts)


def _section(markdown: str, heading: str) -> Optional[str]:
    match = re.search(rf"## {heading}\n\n(.*?)(?=\n## |\Z)", markdown, re.DOTALL)
    return match.group(1) if match else None


def _bullets(block: Optional[str]) -> list[str]:
    if not block:
        return []
    return [line[2:].strip() for line in block.splitlines() if line.startswith("- ")]


def _field(markdown: str, label: str) -> Optional[str]:
    match = re.search(rf"\*\*{label}:\*\*\s+(.+)", markdown)
    return match.group(1).strip() if match else None


def parse_entry_markdown(markdown: str, slug: str, filename: Optional[str] = None) -> JournalEntry:
    title_match = re.match(r"#\s+(.+)", markdown)
    title = title_match.group(1).strip() if title_match else slug

    captured_at = datetime.now()
    file_match = _FILENAME_RE.match(filename or "")
    if file_match:
        captured_at = datetime.strptime(file_match.group(1), "%Y-%m-%d").replace(hour=12)
    date_match = re.search(r"\*Captured:\s+(.+?)\*", markdown)
    if date_match:
        try:
            captured_at = datetime.strptime(date_match.group(1), CAPTURED_FORMAT)
        except ValueError:
            logger.debug("Unparseable capture date %r in %s", date_match.group(1), filename)

    context = JournalContext(
        phase=_field(markdown, "Phase"),
        activity=_field(markdown, "Activity"),
        curriculum_id=_field(markdown, "Curriculum ID"),
    )

    return JournalEntry(
        slug=slug,
        title=title,
        content=(_section(markdown, "Content") or "").strip(),
        captured_at=captured_at,
        context=None if context.is_empty() else context,
        takeaways=_bullets(_section(markdown, "Key Takeaways")),
        related_topics=_bullets(_section(markdown, "Related Topics")),
    )


# ─── Storage ─────────────────────────────────────────────────────────────────

def save_journal_entry(
    title: str,
    content: str,
    context: Optional[JournalContext] = None,
    takeaways: Optional[list[str]] = None,
    related_topics: Optional[list[str]] = None,
    journal_dir: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> JournalEntry:
    journal_dir = Path(journal_dir) if journal_dir is not None else get_journal_dir()
    journal_dir.mkdir(parents=True, exist_ok=True)

    captured_at = now or datetime.now()
    slug = generate_slug(title) or f"entry-{captured_at.strftime('%H%M%S')}"
    path = journal_dir / f"{captured_at.strftime('%Y-%m-%d')}-{slug}.md"

    entry = JournalEntry(
        slug=slug,
        title=title,
        content=content,
        captured_at=captured_at,
        context=context,
        takeaways=list(takeaways or []),
        related_topics=list(related_topics or []),
        path=path,
    )
    path.write_text(format_entry_markdown(entry), encoding="utf-8")
    logger.info("Saved journal entry %s", path.name)
    return entry


def list_journal_entries(journal_dir: Optional[Path] = None) -> list[JournalListing]:
    """Entries newest first (file names start with the capture date)."""
    journal_dir = Path(journal_dir) if journal_dir is not None else get_journal_dir()
    if not journal_dir.is_dir():
        return []

    listings: list[JournalListing] = []
    for path in sorted(journal_dir.glob("*.md"), reverse=True):
        title_match = re.search(r"^#\s+(.+)$", path.read_text(encoding="utf-8"), re.MULTILINE)
        name_match  = _FILENAME_RE.match(path.name)
        listings.append(JournalListing(
            slug=name_match.group(2) if name_match else path.stem,
            title=title_match.group(1).strip() if title_match else path.stem,
            date=name_match.group(1) if name_match else "unknown",
            path=path,
        ))
    return listings


def get_journal_entry(slug: str, journal_dir: Optional[Path] = None) -> Optional[JournalEntry]:
    """Look up an entry by exact slug, falling back to a partial file-name match."""
    journal_dir = Path(journal_dir) if journal_dir is not None else get_journal_dir()
    if not journal_dir.is_dir():
        return None

    files = sorted(journal_dir.glob("*.md"))
    match = next(
        (p for p in files if (m := _FILENAME_RE.match(p.name)) and m.group(2) == slug),
        None,
    )
    if match is None:
        match = next((p for p in files if slug.lower() in p.name.lower()), None)
    if match is None:
        return None

    name_match = _FILENAME_RE.match(match.name)
    entry = parse_entry_markdown(
        match.read_text(encoding="utf-8"),
        name_match.group(2) if name_match else slug,
        match.name,
    )
    entry.path = match
    return entry

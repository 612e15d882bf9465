"""
Tama Learn - Knowledge

Knowledge is this pet's food. Items arrive from manual entry, local text
files, fetched web pages and visitor gifts; ingesting one grows the
environment's knowledge level and the pet's intelligence.

Remote and file reads happen before anything is committed, so a failed read
never leaves a half-fed pet behind.
"""

from __future__ import annotations

import logging
import os
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from datetime import datetime
from html.parser import HTMLParser
from typing import Callable, Optional, Sequence

from .errors import FetchError, KnowledgeReadError
from .models import Activity, KnowledgeItem, KnowledgeSource, PetState
from .pipeline import commit
from .utils import MAX_FILE_CHARS, MAX_PAGE_CHARS

logger = logging.getLogger(__name__)

# Takes a URL, returns the page's HTML
FetchFn = Callable[[str], str]

_SKIPPED_TAGS = {"script", "style", "nav", "footer", "header"}
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class IngestGains:
    """How much one ingested item is worth."""

    knowledge: float
    hunger: float
    intelligence: float


STANDARD_GAINS = IngestGains(knowledge=5, hunger=15, intelligence=0.5)
# Browsing takes more effort, so it feeds more.
BROWSE_GAINS = IngestGains(knowledge=10, hunger=20, intelligence=1)


def make_item(
    title: str,
    content: str,
    source: KnowledgeSource,
    now: datetime,
    category: Optional[str] = None,
    tags: Sequence[str] = (),
    limit: int = MAX_FILE_CHARS,
) -> KnowledgeItem:
    """Build a knowledge item with a fresh id, truncating the content."""
    return KnowledgeItem(
        title=title,
        content=content[:limit],
        source=source,
        timestamp=now,
        category=category,
        tags=tuple(tags),
    )


def ingest(
    state: PetState,
    item: KnowledgeItem,
    now: datetime,
    gains: IngestGains = STANDARD_GAINS,
) -> PetState:
    """
    Feed a knowledge item to the pet.

    Args:
        state: Current snapshot
        item: Item to prepend to the knowledge base
        now: Current time
        gains: Reward table for this kind of ingestion

    Returns:
        Next snapshot (unchanged when the pet is dead)
    """
    if not state.is_alive:
        logger.debug("ignored knowledge %r: pet is dead", item.title)
        return state

    level = state.environment.knowledge_level
    environment = state.environment.adjust(knowledge_level=min(gains.knowledge, 100 - level))
    stats = state.stats.adjust(hunger=-gains.hunger)
    personality = state.personality.adjust(intelligence=gains.intelligence)
    return commit(
        state,
        Activity.LEARN,
        stats,
        now,
        environment=environment,
        personality=personality,
        knowledge=(item,) + state.knowledge,
    )


def read_file_item(path: str, now: datetime, category: Optional[str] = None) -> KnowledgeItem:
    """
    Read a local text file into a knowledge item.

    Args:
        path: File to read
        now: Current time
        category: Optional category label

    Returns:
        KnowledgeItem titled with the file name, content cut to 5000 chars

    Raises:
        KnowledgeReadError: The file is missing, unreadable or not text
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise KnowledgeReadError(path, str(e)) from e
    return make_item(os.path.basename(path), content, KnowledgeSource.FILE, now, category=category)


class _PageTextParser(HTMLParser):
    """Collects title, meta description and visible body text."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.title = ""
        self.description = ""
        self.chunks: list[str] = []
        self._skip_depth = 0
        self._in_title = False
        self._in_head = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
        elif tag == "title":
            self._in_title = True
        elif tag == "head":
            self._in_head = True
        elif tag == "body":
            self._in_head = False
        elif tag == "meta":
            values = dict(attrs)
            if (values.get("name") or "").lower() == "description" and not self.description:
                self.description = (values.get("content") or "").strip()

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIPPED_TAGS and self._skip_depth:
            self._skip_depth -= 1
        elif tag == "title":
            self._in_title = False
        elif tag == "head":
            self._in_head = False

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self.title += data
        elif not self._skip_depth and not self._in_head:
            self.chunks.append(data)


def extract_page(html: str, url: str) -> tuple[str, str]:
    """
    Turn a fetched HTML page into (title, content).

    Script, style, nav, footer and header blocks are dropped, whitespace is
    collapsed and the text is cut to 3000 chars; the meta description, when
    present, is put in front.

    Args:
        html: Raw page markup
        url: Where the page came from (title fallback)

    Returns:
        Tuple of (title, content)
    """
    parser = _PageTextParser()
    parser.feed(html)
    parser.close()

    text = _WHITESPACE.sub(" ", " ".join(parser.chunks)).strip()[:MAX_PAGE_CHARS]
    title = _WHITESPACE.sub(" ", parser.title).strip() or url.split("/")[-1] or "Web Page"
    content = f"{parser.description}\n\n{text}" if parser.description else text
    return title, content


def fetch_html(url: str, timeout: float = 15.0) -> str:
    """
    Download a page.

    Args:
        url: Page address
        timeout: Socket timeout in seconds

    Returns:
        Decoded HTML

    Raises:
        FetchError: Any HTTP, network or decoding failure
    """
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "tamalearn/1.0"})
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            charset = resp.headers.get_content_charset() or "utf-8"
            raw = resp.read()
    except urllib.error.HTTPError as e:
        raise FetchError(url, f"HTTP {e.code}") from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise FetchError(url, str(e)) from e
    try:
        return raw.decode(charset, errors="replace")
    except LookupError as e:
        raise FetchError(url, f"unknown charset {charset}") from e


def browse(url: str, now: datetime, fetch: Optional[FetchFn] = None) -> KnowledgeItem:
    """
    Fetch a page and turn it into a knowledge item tagged "web" and "browsed".

    Raises:
        FetchError: The page could not be fetched
    """
    html = (fetch or fetch_html)(url)
    title, content = extract_page(html, url)
    logger.info("read %r from %s", title, url)
    return make_item(title, content, KnowledgeSource.URL, now, tags=("web", "browsed"), limit=len(content))


def learn_from_url(
    state: PetState,
    url: str,
    now: datetime,
    fetch: Optional[FetchFn] = None,
) -> PetState:
    """
    Browse a page and feed what was read to the pet.

    Args:
        state: Current snapshot
        url: Page to learn from
        now: Current time
        fetch: Page fetcher (defaults to fetch_html)

    Returns:
        Next snapshot (unchanged when the pet is dead)

    Raises:
        FetchError: The page could not be fetched; state is not touched
    """
    if not state.is_alive:
        return state
    return ingest(state, browse(url, now, fetch), now, BROWSE_GAINS)


def learn_from_file(state: PetState, path: str, now: datetime, category: Optional[str] = None) -> PetState:
    """Read a local file and feed it to the pet. Raises KnowledgeReadError."""
    if not state.is_alive:
        return state
    return ingest(state, read_file_item(path, now, category=category), now)

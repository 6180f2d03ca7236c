"""
News aggregation - local markdown articles merged with the note RSS feed.

The RSS parser is a tolerant regex extractor: anything it cannot read is
skipped, and a feed that cannot be fetched contributes no items.
"""

import asyncio
import html
import logging
import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Iterator, List, Optional

import aiofiles
import httpx
import yaml
from pydantic import ValidationError

from ..config import settings
from ..models.news import UnifiedNewsItem

logger = logging.getLogger(__name__)

DESCRIPTION_LENGTH = 100

_ITEM_RE = re.compile(r"<item>([\s\S]*?)</item>")
_TAG_RE = re.compile(r"<[^>]*>")
_FRONT_MATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)


def _extract(block: str, tag: str) -> str:
    """Text of ``<tag>``, CDATA-wrapped or plain; empty when absent."""
    escaped = re.escape(tag)
    match = (
        re.search(rf"<{escaped}><!\[CDATA\[([\s\S]*?)\]\]></{escaped}>", block)
        or re.search(rf"<{escaped}>([\s\S]*?)</{escaped}>", block)
    )
    return match.group(1).strip() if match else ""


def _parse_pub_date(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_rss_items(xml: str) -> Iterator[UnifiedNewsItem]:
    """Yield one note item per readable ``<item>`` block, in feed order."""
    for index, match in enumerate(_ITEM_RE.finditer(xml or "")):
        block = match.group(1)
        published = _parse_pub_date(_extract(block, "pubDate"))
        if published is None:
            logger.debug(f"Skipping RSS item {index}: unreadable pubDate")
            continue

        description = html.unescape(_TAG_RE.sub("", _extract(block, "description")))
        yield UnifiedNewsItem(
            id=f"note-{index}",
            title=html.unescape(_extract(block, "title")),
            date=published,
            description=description[:DESCRIPTION_LENGTH],
            category="note",
            href=_extract(block, "link"),
            is_external=True,
            thumbnail=_extract(block, "media:thumbnail") or None,
        )


async def fetch_note_articles(url: Optional[str] = None, timeout: Optional[float] = None) -> List[UnifiedNewsItem]:
    """Fetch and parse the note RSS feed. Any failure yields an empty list."""
    url = url or settings.note_rss_url
    try:
        async with httpx.AsyncClient(timeout=timeout or settings.feed_timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch note RSS: {e!r}")
        return []
    return list(parse_rss_items(resp.text))


def _as_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return _as_datetime(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None


def parse_front_matter(text: str) -> dict:
    """YAML front matter of a markdown document, or {} if there is none."""
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return {}
    data = yaml.safe_load(match.group(1))
    return data if isinstance(data, dict) else {}


async def load_local_news(content_dir: Optional[str] = None) -> List[UnifiedNewsItem]:
    """Read ``*.md`` news articles. Files with unusable front matter are skipped."""
    base = Path(content_dir or settings.news_content_dir)
    if not base.is_dir():
        return []

    items = []
    for path in sorted(base.rglob("*.md")):
        article_id = path.relative_to(base).with_suffix("").as_posix()
        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                meta = parse_front_matter(await f.read())
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Skipping news article {path}: {e}")
            continue

        published = _as_datetime(meta.get("date"))
        title = meta.get("title")
        if published is None or not title:
            logger.warning(f"Skipping news article {path}: title and date are required")
            continue

        category = meta.get("category", "info")
        try:
            item = UnifiedNewsItem(
                id=article_id,
                title=str(title),
                date=published,
                description=meta.get("description"),
                category=category if category in ("info", "event") else "info",
                href=f"/news/{article_id}",
                is_external=False,
                thumbnail=meta.get("image"),
            )
        except ValidationError as e:
            logger.warning(f"Skipping news article {path}: {e.error_count()} invalid fields")
            continue
        items.append(item)
    return items


async def get_unified_news(
    rss_url: Optional[str] = None,
    content_dir: Optional[str] = None,
) -> List[UnifiedNewsItem]:
    """Note articles and local news together, newest first."""
    note_articles, local_news = await asyncio.gather(
        fetch_note_articles(rss_url),
        load_local_news(content_dir),
    )
    return sorted([*note_articles, *local_news], key=lambda item: item.date, reverse=True)


def format_date(value: datetime) -> str:
    """Japanese long date, e.g. 2025年4月1日."""
    return f"{value.year}年{value.month}月{value.day}日"

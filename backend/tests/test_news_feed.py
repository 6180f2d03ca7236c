"""
Tests for news aggregation: RSS parsing, local articles and the /api/news route.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tgnsite.services.news_feed import (
    fetch_note_articles,
    format_date,
    get_unified_news,
    load_local_news,
    parse_front_matter,
    parse_rss_items,
)

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
<channel>
  <title>TGN note</title>
  <item>
    <title><![CDATA[院生の虎 開催レポート]]></title>
    <link>https://note.com/tgn/n/abc</link>
    <description><![CDATA[<p>今年も<b>院生の虎</b>を開催しました &amp; 大盛況！</p>]]></description>
    <pubDate>Tue, 01 Apr 2025 09:00:00 +0900</pubDate>
    <media:thumbnail>https://assets.note.com/thumb.png</media:thumbnail>
  </item>
  <item>
    <title>壊れた日付</title>
    <link>https://note.com/tgn/n/bad</link>
    <pubDate>not a date</pubDate>
  </item>
  <item>
    <title>長い記事</title>
    <link>https://note.com/tgn/n/long</link>
    <description>{long}</description>
    <pubDate>Wed, 01 Jan 2025 00:00:00 GMT</pubDate>
  </item>
</channel>
</rss>
""".replace("{long}", "あ" * 150)


def _write_article(directory, name, text):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_text(text, encoding="utf-8")


class TestParseRss:

    def test_items(self):
        items = list(parse_rss_items(RSS))

        assert [item.id for item in items] == ["note-0", "note-2"]
        first = items[0]
        assert first.title == "院生の虎 開催レポート"
        assert first.href == "https://note.com/tgn/n/abc"
        assert first.description == "今年も院生の虎を開催しました & 大盛況！"
        assert first.category == "note"
        assert first.is_external is True
        assert first.thumbnail == "https://assets.note.com/thumb.png"
        assert first.date == datetime(2025, 4, 1, 0, 0, tzinfo=timezone.utc)

    def test_description_truncated(self):
        items = list(parse_rss_items(RSS))
        assert len(items[1].description) == 100
        assert items[1].thumbnail is None

    def test_empty_feed(self):
        assert list(parse_rss_items("")) == []
        assert list(parse_rss_items("<rss></rss>")) == []


class TestFetchNoteArticles:

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        mock_response = MagicMock()
        mock_response.text = RSS
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_instance.get.return_value = mock_response
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_client.return_value = mock_instance

            items = await fetch_note_articles("https://note.com/tgn/rss")

        assert len(items) == 2
        mock_instance.get.assert_called_once_with("https://note.com/tgn/rss")

    @pytest.mark.asyncio
    async def test_fetch_failure_yields_nothing(self):
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_instance.get.side_effect = httpx.ConnectError("offline")
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_client.return_value = mock_instance

            assert await fetch_note_articles("https://note.com/tgn/rss") == []


class TestLocalNews:

    def test_front_matter(self):
        meta = parse_front_matter("---\ntitle: 花見\ndate: 2025-04-05\n---\n本文")
        assert meta["title"] == "花見"

    def test_no_front_matter(self):
        assert parse_front_matter("# just markdown") == {}

    @pytest.mark.asyncio
    async def test_load(self, tmp_path):
        _write_article(tmp_path, "hanami.md", (
            "---\n"
            "title: 花見のお知らせ\n"
            "date: 2025-04-05\n"
            "category: event\n"
            "description: 今年も開催します\n"
            "image: /uploads/hanami.png\n"
            "---\n"
            "本文\n"
        ))
        _write_article(tmp_path, "notice.md", "---\ntitle: お知らせ\ndate: 2025-03-01\ncategory: weird\n---\n")
        _write_article(tmp_path, "broken.md", "---\ntitle: [unclosed\n---\n")
        _write_article(tmp_path, "untitled.md", "---\ndate: 2025-03-01\n---\n")

        items = {item.id: item for item in await load_local_news(str(tmp_path))}

        assert set(items) == {"hanami", "notice"}
        hanami = items["hanami"]
        assert hanami.category == "event"
        assert hanami.href == "/news/hanami"
        assert hanami.is_external is False
        assert hanami.thumbnail == "/uploads/hanami.png"
        assert hanami.date == datetime(2025, 4, 5, tzinfo=timezone.utc)
        assert items["notice"].category == "info"

    @pytest.mark.asyncio
    async def test_wrongly_typed_front_matter_is_skipped(self, tmp_path):
        _write_article(tmp_path, "ok.md", "---\ntitle: OK\ndate: 2025-02-01\n---\n")
        _write_article(tmp_path, "bad.md", (
            "---\ntitle: Bad\ndate: 2025-02-02\ndescription: 2025\nimage: [a, b]\n---\n"
        ))

        items = await load_local_news(str(tmp_path))

        assert [item.id for item in items] == ["ok"]

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        assert await load_local_news(str(tmp_path / "nope")) == []


class TestUnifiedNews:

    @pytest.mark.asyncio
    async def test_merged_newest_first(self, tmp_path):
        _write_article(tmp_path, "a.md", "---\ntitle: A\ndate: 2025-03-15\n---\n")
        _write_article(tmp_path, "b.md", "---\ntitle: B\ndate: 2024-12-01\n---\n")

        with patch("tgnsite.services.news_feed.fetch_note_articles",
                   AsyncMock(return_value=list(parse_rss_items(RSS)))):
            items = await get_unified_news(content_dir=str(tmp_path))

        assert [item.id for item in items] == ["note-0", "a", "note-2", "b"]

    def test_news_endpoint_survives_bad_local_file(self, client, tmp_path, monkeypatch):
        from tgnsite.config import settings
        _write_article(tmp_path, "ok.md", "---\ntitle: OK\ndate: 2025-02-01\n---\n")
        _write_article(tmp_path, "bad.md", "---\ntitle: Bad\ndate: 2025-02-02\nimage: [a, b]\n---\n")
        monkeypatch.setattr(settings, "news_content_dir", str(tmp_path))

        with patch("tgnsite.services.news_feed.fetch_note_articles", AsyncMock(return_value=[])):
            response = client.get("/api/news")

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == ["ok"]

    def test_format_date(self):
        assert format_date(datetime(2025, 4, 1, tzinfo=timezone.utc)) == "2025年4月1日"

    def test_news_endpoint(self, client):
        with patch("tgnsite.api.news.get_unified_news",
                   AsyncMock(return_value=list(parse_rss_items(RSS)))):
            response = client.get("/api/news")

        assert response.status_code == 200
        first = response.json()["items"][0]
        assert first["isExternal"] is True
        assert first["formattedDate"] == "2025年4月1日"
        assert first["category"] == "note"

"""
News API endpoint - unified local + note news list.
"""

from fastapi import APIRouter

from ..services.news_feed import format_date, get_unified_news

router = APIRouter(prefix="/api", tags=["news"])


@router.get("/news")
async def list_news():
    """All news items, newest first."""
    items = await get_unified_news()
    return {
        "items": [
            {
                **item.model_dump(mode="json", by_alias=True),
                "formattedDate": format_date(item.date),
            }
            for item in items
        ]
    }

"""Services module - clients for the payment API and the news feed."""

from .checkout import StripeCheckoutClient
from .news_feed import get_unified_news, parse_rss_items, load_local_news, format_date

__all__ = ['StripeCheckoutClient', 'get_unified_news', 'parse_rss_items', 'load_local_news', 'format_date']

"""
Keyword tagger attaching site links to Qちゃん replies.
"""

from typing import List, Tuple

from ..models.chat import Source


# Evaluated in this order; each matching group contributes its source once.
TOPIC_GROUPS: List[Tuple[Tuple[str, ...], Source]] = [
    (
        ("tgnとは", "tgnって", "tgnについて", "つくば院生ネットワーク", "院生ネットワーク",
         "what is tgn", "about tgn", "理念", "設立"),
        Source(title="TGNについて", url="/qchan#about"),
    ),
    (
        ("イベント", "院生ひろば", "院生の虎", "花見", "qxq", "event"),
        Source(title="TGNのイベント", url="/qchan#events"),
    ),
    (
        ("参加", "入りたい", "加入", "メンバー", "仲間", "join"),
        Source(title="参加方法", url="/qchan#join"),
    ),
    (
        ("連絡", "問い合わせ", "問合せ", "メール", "mail", "twitter", "@tgn_tsukuba", "contact"),
        Source(title="お問い合わせ", url="/qchan#contact"),
    ),
]


def classify_topics(message: str, reply: str) -> List[Source]:
    """Return the sources whose keywords occur in the message or the reply."""
    buffer = f"{message}\n{reply}".lower()

    sources: List[Source] = []
    seen_urls = set()
    for keywords, source in TOPIC_GROUPS:
        if source.url in seen_urls:
            continue
        if any(keyword in buffer for keyword in keywords):
            sources.append(source)
            seen_urls.add(source.url)
    return sources

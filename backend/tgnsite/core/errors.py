"""
Application error taxonomy.

Every error carries a short ``message`` (the machine-facing ``error`` field of
a JSON body) and a friendly ``reply`` shown to site visitors.
"""

from typing import Any, Dict, Optional


CONTACT_FALLBACK = (
    "お急ぎの場合はこちらから連絡してね📮\n"
    "メール: tsukuba.graduate@gmail.com\n"
    "X (Twitter): @TGN_tsukuba"
)


class AppError(Exception):
    """Base error class for application exceptions."""

    status_code: int = 500
    default_message: str = "サーバーエラー"
    default_reply: str = "ネットワークエラーが起きちゃった😢 しばらくしてからもう一度試してね！"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        reply: Optional[str] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        self.reply = reply or self.default_reply

    def to_payload(self) -> Dict[str, Any]:
        """Body used by the chat and checkout endpoints."""
        return {"error": self.message, "reply": self.reply}


class RateLimitedError(AppError):
    status_code = 429
    default_message = "レート制限"
    default_reply = "ちょっと質問が多すぎるみたい😅 少し待ってからまた聞いてね！"


class InvalidInputError(AppError):
    status_code = 400
    default_message = "メッセージが必要です"
    default_reply = "メッセージを入力してね！"


class MessageTooLongError(InvalidInputError):
    default_message = "メッセージが長すぎます"
    default_reply = "メッセージが長すぎるよ😅 もう少し短くしてね！"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "認証が必要です"
    default_reply = "ログインしてね！"


class NotFoundError(AppError):
    status_code = 404
    default_message = "見つかりません"
    default_reply = "お探しのものが見つからなかったよ🤔"


class UpstreamUnavailableError(AppError):
    """External service unreachable or answered with a non-success status."""

    default_message = "AI応答エラー"
    default_reply = "ごめんね、ちょっと調子が悪いみたい😅 もう一度試してみて！\n\n" + CONTACT_FALLBACK


class UpstreamMalformedError(AppError):
    """External service answered, but not in the expected shape."""

    default_message = "応答を取得できませんでした"
    default_reply = "ごめんね、ちょっとうまく答えられなかったみたい😅 もう一度聞いてくれる？\n\n" + CONTACT_FALLBACK


class ConfigurationError(AppError):
    default_message = "サーバー設定エラー"
    default_reply = "ごめんね、今サーバーの設定に問題があるみたい😢 管理者に連絡してね！\n\n" + CONTACT_FALLBACK


class PersistenceError(AppError):
    """Session log write failed. Logged only, never returned to a client."""

    default_message = "保存エラー"

"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "TGN Website API"
    app_version: str = "1.0.0"
    debug: bool = False

    # LLM provider settings (Qちゃん chat)
    llm_provider: str = "gemini"
    gemini_api_key: Optional[str] = None
    llm_model: str = "gemini-2.0-flash"
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_temperature: float = 0.8
    llm_max_output_tokens: int = 300
    llm_timeout: float = 60.0
    system_prompt: Optional[str] = None  # overrides the built-in persona prompt

    # Chat limits
    chat_rate_limit: int = 10  # admitted requests per window
    chat_rate_window_ms: int = 60000
    chat_max_message_length: int = 500
    client_ip_header: str = "cf-connecting-ip"
    ip_hash_salt: str = "tgn-qchan"

    # Relational store
    database_url: str = "sqlite+aiosqlite:///./data/tgn.db"

    # Blob storage
    local_storage_path: str = "./data/uploads"
    upload_url_prefix: str = "/uploads"

    # Admin authentication
    admin_password: Optional[str] = None
    admin_password_hash: Optional[str] = None  # bcrypt hash, preferred over admin_password
    auth_token_mode: str = "legacy"  # "legacy" (opaque marker) or "jwt"
    auth_cookie_name: str = "auth_token"
    auth_cookie_max_age: int = 60 * 60 * 24  # 1 day
    secret_key: str = "change-this-secret-key"
    algorithm: str = "HS256"

    # Donations (Stripe Checkout)
    stripe_secret_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com/v1"
    stripe_timeout: float = 30.0
    donation_amounts: list[int] = [100, 500, 1000]
    donation_currency: str = "jpy"
    donation_success_url: str = "https://tgn.official.jp/donate/success"
    donation_cancel_url: str = "https://tgn.official.jp/donate"

    # News aggregation
    note_rss_url: str = "https://note.com/tkbgradnet/rss"
    news_content_dir: str = "./content/news"
    feed_timeout: float = 10.0

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/tgnsite.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all LLM calls with timing

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

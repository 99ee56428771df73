"""
Service configuration, read from the environment (and a local .env file).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    database_url: str = "sqlite:///quickflip.db"
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    ebay_client_id: Optional[str] = None
    ebay_client_secret: Optional[str] = None
    ebay_redirect_uri: Optional[str] = None  # eBay RuName, not a URL
    ebay_sandbox: bool = False

    etsy_client_id: Optional[str] = None
    etsy_client_secret: Optional[str] = None
    etsy_redirect_uri: Optional[str] = None
    etsy_shop_id: Optional[str] = None

    stockx_client_id: Optional[str] = None
    stockx_client_secret: Optional[str] = None
    stockx_redirect_uri: Optional[str] = None
    stockx_api_key: Optional[str] = None

    def missing_keys(self) -> List[str]:
        """Names of integration settings that are not configured."""
        required = {
            "OPENAI_API_KEY": self.openai_api_key,
            "JWT_SECRET": self.jwt_secret,
            "EBAY_CLIENT_ID": self.ebay_client_id,
            "EBAY_CLIENT_SECRET": self.ebay_client_secret,
            "EBAY_REDIRECT_URI": self.ebay_redirect_uri,
            "ETSY_CLIENT_ID": self.etsy_client_id,
            "ETSY_CLIENT_SECRET": self.etsy_client_secret,
            "ETSY_REDIRECT_URI": self.etsy_redirect_uri,
            "STOCKX_CLIENT_ID": self.stockx_client_id,
            "STOCKX_CLIENT_SECRET": self.stockx_client_secret,
            "STOCKX_REDIRECT_URI": self.stockx_redirect_uri,
            "STOCKX_API_KEY": self.stockx_api_key,
        }
        return [name for name, value in required.items() if not value]


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the service settings"""
    global _settings

    if _settings is None:
        load_dotenv()
        _settings = Settings(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            database_url=os.getenv("DATABASE_URL", "sqlite:///quickflip.db"),
            jwt_secret=os.getenv("JWT_SECRET"),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            ebay_client_id=os.getenv("EBAY_CLIENT_ID"),
            ebay_client_secret=os.getenv("EBAY_CLIENT_SECRET"),
            ebay_redirect_uri=os.getenv("EBAY_REDIRECT_URI"),
            ebay_sandbox=_env_bool("EBAY_SANDBOX"),
            etsy_client_id=os.getenv("ETSY_CLIENT_ID"),
            etsy_client_secret=os.getenv("ETSY_CLIENT_SECRET"),
            etsy_redirect_uri=os.getenv("ETSY_REDIRECT_URI"),
            etsy_shop_id=os.getenv("ETSY_SHOP_ID"),
            stockx_client_id=os.getenv("STOCKX_CLIENT_ID"),
            stockx_client_secret=os.getenv("STOCKX_CLIENT_SECRET"),
            stockx_redirect_uri=os.getenv("STOCKX_REDIRECT_URI"),
            stockx_api_key=os.getenv("STOCKX_API_KEY"),
        )

    return _settings


def reload_settings() -> Settings:
    """Force reload settings from the environment"""
    global _settings
    _settings = None
    return get_settings()

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic_settings import BaseSettings

_ENV_FILE = Path.home() / "env" / ".env.dev"
_env_vars = dotenv_values(str(_ENV_FILE)) if _ENV_FILE.exists() else {}

# unprefixed vendor keys that may live in the shared env file
_VENDOR_KEYS = {
    "clover_api_token": "CLOVER_API_TOKEN",
    "clover_merchant_id": "CLOVER_MERCHANT_ID",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "unsplash_access_key": "UNSPLASH_ACCESS_KEY",
    "catalog_api_key": "CATALOG_API_KEY",
}


class Settings(BaseSettings):
    app_name: str = "Inventory Feed"
    debug: bool = False
    log_level: str = "INFO"
    log_file: Path | None = None

    # point-of-sale source
    clover_api_base_url: str = "https://api.clover.com"
    clover_api_token: str = ""
    clover_merchant_id: str = ""
    clover_page_size: int = 1000
    clover_max_pages: int = 100
    clover_page_delay: float = 0.1
    clover_timeout: float = 30.0

    # AI name normalization
    anthropic_api_key: str = ""
    normalizer_model: str = "claude-haiku-4-5"
    normalizer_timeout: float = 5.0

    # product catalog
    catalog_base_url: str = "https://api.kicks.dev/v3/stockx/products"
    catalog_api_key: str = ""
    catalog_result_limit: int = 10
    catalog_timeout: float = 15.0

    # image search
    unsplash_base_url: str = "https://api.unsplash.com"
    unsplash_access_key: str = ""
    image_search_limit: int = 5
    image_search_timeout: float = 10.0

    # caching
    raw_cache_ttl: float = 300.0
    enrichment_cache_size: int = 5000
    fallback_cache_ttl: float = 60.0

    # enrichment
    batch_size: int = 10
    enrichment_rate_per_second: float = 100.0
    prefetch_next_page: bool = True

    # serving
    default_page_size: int = 50
    max_page_size: int = 100

    model_config = {
        "env_prefix": "FEED_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def model_post_init(self, __context):
        for field, key in _VENDOR_KEYS.items():
            if not getattr(self, field):
                setattr(self, field, _env_vars.get(key) or os.getenv(key, ""))


settings = Settings()

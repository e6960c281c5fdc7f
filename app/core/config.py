"""
Application configuration using Pydantic Settings
"""

from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator


def _split_csv(v):
    """Accept either a list or a comma-separated string and return a list."""
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API Settings
    api_title: str = "Image Scraper API"
    api_description: str = (
        "Search images by keyword and re-host optimized copies with public URLs"
    )
    api_version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS Settings
    cors_origins: Union[List[str], str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["GET", "POST", "OPTIONS"]
    cors_allow_headers: list = ["*"]

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    log_file: str = "data/app.log"

    # Security Settings
    max_requests_per_minute: int = 10

    # Identity rotation
    user_agents: Union[List[str], str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    ]
    proxy_list: Union[List[str], str] = []

    # Result filter
    excluded_domain_markers: Union[List[str], str] = [
        "wikipedia.org",
        "wikimedia.org",
        "wiki",
    ]

    @field_validator(
        "cors_origins", "user_agents", "proxy_list", "excluded_domain_markers"
    )
    @classmethod
    def parse_csv_lists(cls, v):
        """Comma-separated env values, e.g. PROXY_LIST=http://a:1,http://b:2 or CORS_ORIGINS=*."""
        return _split_csv(v)

    @field_validator("user_agents")
    @classmethod
    def require_user_agent(cls, v):
        if not v:
            raise ValueError("user_agents must contain at least one entry")
        return v

    # Search provider settings
    search_base_url: str = "https://duckduckgo.com"
    search_locale: str = "us-en"
    search_max_attempts: int = 8
    search_timeout: float = 45.0
    search_max_redirects: int = 5
    search_pacing_min: float = 1.5
    search_pacing_max: float = 2.5
    search_backoff_base: float = 2.0
    search_backoff_step: float = 1.0
    search_backoff_jitter: float = 2.0

    # Download Settings
    download_timeout: float = 30.0
    download_max_bytes: int = 10 * 1024 * 1024  # 10MB
    download_min_bytes: int = 100
    download_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    # Image Processing Settings
    image_max_width: int = 1920
    image_quality: int = 85
    image_effort: int = 6  # WebP "method", 0 (fast) .. 6 (smallest)
    image_output_format: str = "WEBP"
    default_watermark_text: str = ""

    # Storage Settings
    storage_backend: str = "local"  # "local" | "s3"
    upload_dir: str = "./uploads/images"
    public_base_url: str = "http://localhost:8000"
    cleanup_max_age_hours: float = 24.0

    # AWS S3 Settings
    aws_s3_bucket: str = ""
    aws_s3_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_prefix: str = "images/"  # S3 object key prefix for uploads

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        # Allow unknown/legacy env vars without failing validation
        "extra": "ignore",
    }


settings = Settings()

"""
Environment-driven configuration for the On-Page SEO Advisor.
Values are read once at import time after loading an optional .env file.
"""
import logging
import os
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_allowed_origins(raw: str) -> List[str]:
    """Split a comma-separated origin list, dropping blanks."""
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


# Proxy fetch client
PROXY_URL = os.getenv("PROXY_URL", "http://localhost:3001/proxy")
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", 15))

# CORS proxy server
PROXY_PORT = int(os.getenv("PORT", 3001))
ALLOWED_ORIGINS = parse_allowed_origins(os.getenv("ALLOWED_ORIGINS", "*"))
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", 30))
UPSTREAM_MAX_REDIRECTS = int(os.getenv("UPSTREAM_MAX_REDIRECTS", 5))
UPSTREAM_VERIFY_TLS = _env_bool("UPSTREAM_VERIFY_TLS", True)

# Analysis API
API_PORT = int(os.getenv("API_PORT", 8000))
SNAPSHOT_DELAY_SECONDS = float(os.getenv("SNAPSHOT_DELAY_SECONDS", 2))
TRACKER_MODE = os.getenv("TRACKER_MODE", "watermark").strip().lower()
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", 1000))
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", 3600))

BROWSER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
    'Cache-Control': 'no-cache',
    'Pragma': 'no-cache',
}


def configure_logging(level: str = None) -> None:
    """Configure root logging the same way for every entry point."""
    level_name = (level or LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )

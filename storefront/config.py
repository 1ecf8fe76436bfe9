# storefront/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Configuration settings for the storefront"""

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))

    # Signing key for download tokens
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    DOWNLOAD_TOKEN_TTL: int = int(os.getenv("DOWNLOAD_TOKEN_TTL", "3600"))

    # Public site address, used to build payment links
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:3000").rstrip("/")

    # Blob storage
    UPLOAD_DIR: Path = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))
    PUBLIC_FILES_URL: str = os.getenv("PUBLIC_FILES_URL", "http://localhost:3000/files").rstrip("/")
    MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(100 * 1024 * 1024)))  # 100MB
    DIGITAL_CONTENT_BUCKET: str = "digital-content"

    # Other settings
    TIMEZONE: str = os.getenv("TZ", "America/Santiago")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    LOG_DIR = BASE_DIR / "logs"

def setup_logging():
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    Config.LOG_DIR.mkdir(exist_ok=True)
    log_file = Config.LOG_DIR / "storefront.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

# storefront/utils/__init__.py
from .formatters import format_price, format_datetime
from .security import generate_download_token, verify_download_token
from .validation import parse_input

__all__ = [
    'format_price',
    'format_datetime',
    'generate_download_token',
    'verify_download_token',
    'parse_input'
]

# storefront/utils/formatters.py
from datetime import datetime
import pytz
from ..config import Config

def format_price(amount: int) -> str:
    """Whole currency units with dot thousands separators, e.g. $9.000"""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.0f}".replace(",", ".")

def format_datetime(dt: datetime) -> str:
    """Date and time in the shop timezone"""
    shop_tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    local_time = dt.astimezone(shop_tz)
    return local_time.strftime("%Y-%m-%d %H:%M:%S")

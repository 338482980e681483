# dokon/utils/helpers.py
import math
import random
import uuid
from datetime import datetime, timezone

EARTH_RADIUS_KM = 6371.0


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(now: datetime | None = None) -> str:
    """YYMMDD-RRRR, human readable, not guaranteed unique on its own."""
    now = now or utcnow()
    return f"{now:%y%m%d}-{random.randint(0, 9999):04d}"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def container_price(selected_container: str | None) -> float:
    # container is stored as "label|price"
    if not selected_container or "|" not in selected_container:
        return 0.0
    _, _, raw = selected_container.partition("|")
    try:
        return float(raw)
    except ValueError:
        return 0.0


def as_utc(value: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

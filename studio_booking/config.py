import os
from dotenv import load_dotenv


load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./data/studio_booking.db")

# JWT issued by the auth service; only verified here
JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "studio-booking-dev-secret")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

# Slot generation
DEFAULT_OPENING_HOUR = 9
DEFAULT_CLOSING_HOUR = 18
SLOT_HORIZON_DAYS = int(os.environ.get("SLOT_HORIZON_DAYS", "7"))
SLOT_REFRESH_ENABLED = _env_bool("SLOT_REFRESH_ENABLED", True)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

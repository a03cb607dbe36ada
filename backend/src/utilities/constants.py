import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number") from exc


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


# ------------ Config ------------
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 4000)
KEEPALIVE_INTERVAL = _env_float("KEEPALIVE_INTERVAL", 20)   # seconds between ": keep-alive" frames
SUBSCRIBER_QUEUE_SIZE = _env_int("SUBSCRIBER_QUEUE_SIZE", 50)  # bounded per-subscriber sink
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_DEMO_MESSAGE = _env_bool("RELAY_SEED_DEMO", True)

_cors = os.getenv("CORS_ALLOW_ORIGINS")
CORS_ALLOW_ORIGINS = [o.strip() for o in _cors.split(",") if o.strip()] if _cors else ["*"]
# --------------------------------

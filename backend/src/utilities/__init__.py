from .constants import (
    HOST,
    PORT,
    KEEPALIVE_INTERVAL,
    SUBSCRIBER_QUEUE_SIZE,
    LOG_LEVEL,
    SEED_DEMO_MESSAGE,
    CORS_ALLOW_ORIGINS,
)
from .utility_functions import KEEPALIVE_FRAME, now_ts, make_event, make_status, make_error

import json
from datetime import datetime, timezone
from typing import Optional

# SSE comment line; clients ignore it, proxies see traffic
KEEPALIVE_FRAME = ": keep-alive\n\n"

def now_ts() -> str:
    return datetime.now(timezone.utc).isoformat()

# Server -> client frames are built as ready-to-write strings
def make_event(message: dict) -> str:
    return f"data: {json.dumps(message, ensure_ascii=False)}\n\n"

def make_status(status: str, message_id: Optional[str] = None) -> dict:
    return {"status": status, "id": message_id, "ts": now_ts()}

def make_error(status: int, code: str, message: str, details: Optional[dict] = None) -> dict:
    return {"error": {"status": status, "code": code, "message": message, "details": details or {}}}

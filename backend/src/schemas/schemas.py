from typing import Any, Optional
from pydantic import BaseModel, ConfigDict

class MessageCreate(BaseModel):
    # payload is passed through uninterpreted; extra fields are kept
    model_config = ConfigDict(extra="allow")

    title: Any = None
    content: Any = None

class StatusResponse(BaseModel):
    status: str
    id: Optional[str] = None
    ts: str

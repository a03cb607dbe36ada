from .schemas import MessageCreate, StatusResponse

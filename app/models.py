from pydantic import BaseModel
from typing import Optional


class ProxyErrorBody(BaseModel):
    error: str = "Proxy Error"
    message: str
    # formatted traceback, development only
    stack: Optional[str] = None

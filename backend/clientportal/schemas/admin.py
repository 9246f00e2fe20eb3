from datetime import datetime

from pydantic import BaseModel


class AdminLoginRequest(BaseModel):
    password: str = ""


class AdminSessionRead(BaseModel):
    authenticated: bool
    expires_at: datetime | None = None

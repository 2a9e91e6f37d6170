from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

SETUP_TOKEN = "setup"
SESSION_TOKEN = "session"
DOWNLOAD_TOKEN = "download"


class TokenClaims(BaseModel):
    sub: UUID  # subject (user) id
    email: str
    role: str
    type: str
    iat: datetime
    exp: datetime

from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class User(BaseModel):
    id: int
    email: str
    nickname: str
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

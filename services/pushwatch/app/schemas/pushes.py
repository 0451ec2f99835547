from pydantic import BaseModel, Field


class MessageOut(BaseModel):
    message: str


class LastPushOut(BaseModel):
    pusher_name: str
    pusher_email: str
    commit_at: str = Field(..., description="RFC3339, UTC")
    old: float = Field(..., description="Hours elapsed since commit_at")

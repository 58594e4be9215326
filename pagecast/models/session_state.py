# pagecast/models/session_state.py

from datetime import datetime, timezone
from typing import Dict

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(BaseModel):
    """
    State of one broadcast session: the page the presenter published for the
    current round and the latest response of every participant.
    """
    page_content: str = ""
    response_by_user: Dict[str, str] = Field(default_factory=dict)
    last_update: datetime = Field(default_factory=utc_now)

    def set_page(self, content: str, now: datetime) -> None:
        """Start a new round: replace the page and drop all responses"""
        self.page_content = content
        self.response_by_user.clear()
        self.last_update = now

    def record_response(self, user_id: str, body: str, now: datetime) -> None:
        """Last write wins per user"""
        self.response_by_user[user_id] = body
        self.last_update = now

    def clear_responses(self) -> None:
        self.response_by_user.clear()

    def is_expired(self, now: datetime, ttl) -> bool:
        return self.last_update + ttl < now

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, List, Dict

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str

class ChatLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    timestamp: float # utc timestamp of the save in millis
    average_score: float = Field(default=0.0)
    messages: List[Dict[str, str]] = Field(default_factory=list, sa_column=Column(JSON)) # [{text, side: left | right}]
    summary: Optional[str] = Field(default=None)

    def to_history(self):
        return {
            "timestamp": self.timestamp,
            "averageScore": self.average_score,
            "messages": self.messages,
            "summary": self.summary,
        }

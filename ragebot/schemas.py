from pydantic import BaseModel, Field
from typing import List, Literal, Optional

class Credentials(BaseModel):
    email: str = ""
    password: str = ""

class RagebotRequest(BaseModel):
    userMessage: Optional[str] = None
    difficulty: Optional[str] = None

class ChatMessage(BaseModel):
    text: str
    side: Literal["left", "right"]

class SaveChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    averageScore: float = 0.0
    summary: Optional[str] = None

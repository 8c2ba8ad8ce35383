# api/v1/schemas/chat.py
from pydantic import BaseModel, Field
from typing import List

from app.domain.models.chat import Message

class ChatIn(BaseModel):
    messages: List[Message] = Field(default_factory=list)

class ErrorOut(BaseModel):
    error: str

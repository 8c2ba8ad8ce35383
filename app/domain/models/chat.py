# app/domain/models/chat.py
import json
from typing import List, Literal

from pydantic import BaseModel

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    role: Role
    content: str
    model_config = {"frozen": True}


class FrameDelta(BaseModel):
    content: str


class FrameChoice(BaseModel):
    delta: FrameDelta


class StreamFrame(BaseModel):
    """
    Canonical unit streamed to the browser:
      {"choices": [{"delta": {"content": "<fragment>"}}]}
    """
    choices: List[FrameChoice]

    @classmethod
    def of(cls, content: str) -> "StreamFrame":
        return cls(choices=[FrameChoice(delta=FrameDelta(content=content))])

    @property
    def content(self) -> str:
        return self.choices[0].delta.content

    def to_sse(self) -> bytes:
        """One `data:` line followed by a blank line."""
        payload = json.dumps(self.model_dump(), ensure_ascii=False, separators=(",", ":"))
        return f"data: {payload}\n\n".encode("utf-8")

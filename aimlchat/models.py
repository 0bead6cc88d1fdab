"""
Data models for chat sessions.
These define the shape of data flowing between the chat, the registry,
the store and the wire.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Model:
    """A remote model, identified by name."""
    name: str

    def to_dict(self) -> dict:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Model":
        return cls(name=data["name"])


@dataclass(frozen=True)
class GenerationParameters:
    """Sampling settings sent with every completion request of a chat."""
    max_tokens: int = 512
    frequency_penalty: float = 0.7
    top_p: float = 0.7
    temperature: float = 0.7
    stream: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationParameters":
        return cls(
            max_tokens=int(data["max_tokens"]),
            frequency_penalty=float(data["frequency_penalty"]),
            top_p=float(data["top_p"]),
            temperature=float(data["temperature"]),
            stream=bool(data["stream"]),
        )


class CompletionRole(enum.Enum):
    USER = "user"
    SYSTEM = "system"
    # AI turns never go over the wire, the value is only a stored marker
    AI = "placeholder"

    @classmethod
    def from_wire(cls, value: str) -> "CompletionRole":
        """Anything that isn't "user" or "system" was written by the model."""
        if value == cls.USER.value:
            return cls.USER
        if value == cls.SYSTEM.value:
            return cls.SYSTEM
        return cls.AI


@dataclass(frozen=True)
class Completion:
    """A single turn in a conversation."""
    role: CompletionRole
    content: str

    @classmethod
    def user(cls, content: str) -> "Completion":
        return cls(CompletionRole.USER, content)

    @classmethod
    def system(cls, content: str) -> "Completion":
        return cls(CompletionRole.SYSTEM, content)

    @classmethod
    def ai(cls, content: str) -> "Completion":
        return cls(CompletionRole.AI, content)

    def to_wire(self) -> dict:
        """Export in the messages array format of the completions endpoint."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_wire(cls, data: dict) -> "Completion":
        return cls(
            role=CompletionRole.from_wire(data.get("role", "")),
            content=data["content"],
        )

"""Chat data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel


class ChatTurn(BaseModel):
    """One message of a conversation."""

    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class Delta:
    """An incremental fragment of assistant text."""

    text: str


@dataclass(frozen=True)
class StreamError:
    """A terminal, user-facing error. No delta follows it."""

    message: str


@dataclass(frozen=True)
class Done:
    """Marks the end of a stream. Always the last event, emitted exactly once."""


StreamEvent = Delta | StreamError | Done

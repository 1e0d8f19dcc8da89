"""Conversation state for an interactive chat, driven by stream events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from geomweb import constants
from geomweb.chat.models import ChatTurn, Delta, StreamError
from geomweb.chat.streaming import stream_chat

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

    from geomweb.chat.models import StreamEvent

    StreamFn = Callable[..., AsyncIterator[StreamEvent]]

logger = logging.getLogger(__name__)


@dataclass
class ChatSession:
    """Runtime state of one conversation with the assistant.

    ``stream_kwargs`` are forwarded to the stream function on every send
    (``endpoint_url``, ``api_key``, ``client``...).
    """

    stream_kwargs: dict[str, Any] = field(default_factory=dict)
    turns: list[ChatTurn] = field(default_factory=list)
    busy: bool = False
    stream_fn: StreamFn = stream_chat

    @property
    def last_reply(self) -> str | None:
        """Content of the last assistant turn, if any."""
        if self.turns and self.turns[-1].role == "assistant":
            return self.turns[-1].content
        return None

    def clear(self) -> int:
        """Forget the conversation. Returns the number of turns removed."""
        count = len(self.turns)
        self.turns.clear()
        return count

    def _append_delta(self, text: str, *, replying: bool) -> None:
        if replying:
            last = self.turns[-1]
            self.turns[-1] = last.model_copy(update={"content": last.content + text})
        else:
            self.turns.append(ChatTurn(role="assistant", content=text))

    async def send(
        self,
        text: str,
        on_event: Callable[[StreamEvent], None] | None = None,
    ) -> bool:
        """Send ``text`` and record the streamed answer.

        Returns ``False`` without doing anything for blank input or while a
        previous send is still running.
        """
        content = text.strip()
        if not content or self.busy:
            return False

        self.busy = True
        self.turns.append(ChatTurn(role="user", content=content))
        history: Sequence[ChatTurn] = list(self.turns)
        replying = False
        try:
            async for event in self.stream_fn(history, **self.stream_kwargs):
                if on_event is not None:
                    on_event(event)
                if isinstance(event, Delta):
                    self._append_delta(event.text, replying=replying)
                    replying = True
                elif isinstance(event, StreamError):
                    logger.debug("Assistant error: %s", event.message)
                    self.turns.append(
                        ChatTurn(
                            role="assistant",
                            content=f"{constants.CHAT_ERROR_PREFIX} {event.message}",
                        ),
                    )
        finally:
            self.busy = False
        return True

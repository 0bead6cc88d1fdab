"""
Chat: one conversation with one model.

Owns the request/response exchange with the completions endpoint:
  record user turn → build payload → POST → check status → extract reply → record reply

History is newest-first: index 0 is always the most recent turn.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field

from aimlchat.errors import MalformedResponse, MissingCredential, NoTransport, UnexpectedStatus
from aimlchat.models import Completion, CompletionRole, GenerationParameters, Model
from aimlchat.transport import HttpTransport

logger = logging.getLogger(__name__)

COMPLETIONS_PATH = "/chat/completions"
SUCCESS_STATUS = 201
SEND_ERROR_MESSAGE = "An error occurred while sending the message"


def outbound_messages(history, message: Completion | None = None) -> list[dict]:
    """
    Messages array for the next request.

    With a history, every AI turn is dropped and the rest keep their
    newest-first order. Without one, only the message being sent goes out.
    """
    if history is None:
        return [message.to_wire()]
    return [c.to_wire() for c in history if c.role is not CompletionRole.AI]


def build_request_body(model: Model, params: GenerationParameters, messages: list[dict]) -> dict:
    return {
        "model": model.name,
        "max_tokens": params.max_tokens,
        "frequency_penalty": params.frequency_penalty,
        "top_p": params.top_p,
        "temperature": params.temperature,
        "stream": params.stream,
        "messages": messages,
    }


def extract_content(data) -> str:
    """Pull choices[0].message.content out of a decoded response."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponse(f"response has no choices[0].message.content: {e!r}") from e
    if not isinstance(content, str):
        raise MalformedResponse(
            f"message content is not a string: {type(content).__name__}"
        )
    return content


@dataclass
class Chat:
    """A conversation: model, sampling parameters, optional history and title."""
    model: Model
    title: str | None = None
    global_params: GenerationParameters = field(default_factory=GenerationParameters)
    history_enabled: bool = False
    history: deque = field(default_factory=deque)
    transport: HttpTransport | None = field(default=None, compare=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, compare=False, repr=False)

    def with_title(self, title: str) -> "Chat":
        self.title = title
        return self

    def with_history(self) -> "Chat":
        """Start recording turns. Existing history is kept."""
        self.history_enabled = True
        return self

    def add_history(self, completion: Completion) -> None:
        """Push a turn to the front. Does nothing when history is off."""
        if self.history_enabled:
            self.history.appendleft(completion)

    async def send_completion(self, api_key: str, message: Completion) -> str:
        """
        Send a message and record the reply as the newest history entry.

        Returns the reply text. On failure an error turn is recorded in its
        place and the original exception propagates.
        """
        if not api_key:
            raise MissingCredential()
        if self.transport is None:
            raise NoTransport()

        async with self._lock:
            self.add_history(message)
            try:
                content = await self._exchange(api_key, message)
            except BaseException as e:
                # cancellation too: the user turn always gets an answer
                logger.warning("Completion with model '%s' failed: %r", self.model.name, e)
                self.add_history(Completion.ai(SEND_ERROR_MESSAGE))
                raise
            self.add_history(Completion.ai(content))
            return content

    async def _exchange(self, api_key: str, message: Completion) -> str:
        messages = outbound_messages(
            self.history if self.history_enabled else None, message
        )
        body = build_request_body(self.model, self.global_params, messages)
        headers = {"Authorization": f"Bearer {api_key}"}

        resp = await self.transport.post(COMPLETIONS_PATH, body, headers)
        if resp.status_code != SUCCESS_STATUS:
            raise UnexpectedStatus(resp.status_code, resp.text[:200])

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponse(f"response is not JSON: {e}") from e

        content = extract_content(data)
        logger.debug(
            "Model '%s' replied with %d chars (%d messages sent)",
            self.model.name, len(content), len(messages),
        )
        return content

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "model": self.model.to_dict(),
            "global_params": self.global_params.to_dict(),
            "history": [c.to_wire() for c in self.history] if self.history_enabled else None,
        }

    @classmethod
    def from_dict(cls, data: dict, transport: HttpTransport | None = None) -> "Chat":
        history = data.get("history")
        return cls(
            model=Model.from_dict(data["model"]),
            title=data.get("title"),
            global_params=GenerationParameters.from_dict(data["global_params"]),
            history_enabled=history is not None,
            history=deque(Completion.from_wire(c) for c in history or []),
            transport=transport,
        )

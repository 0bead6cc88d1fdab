"""
AimlChat: the caller-facing surface.

Wires config, transport, store and registry together:
  start() → set_api_key() → create_chat() / select_chat() → send() → save()
"""

from __future__ import annotations

import logging
from uuid import UUID

from aimlchat.chat import Chat
from aimlchat.config import default_params, get_config, with_defaults
from aimlchat.errors import ChatNotFound, MissingCredential
from aimlchat.manager import ChatManager
from aimlchat.models import Completion, CompletionRole, Model
from aimlchat.store import JsonStore
from aimlchat.transport import HttpTransport

logger = logging.getLogger(__name__)


class AimlChat:
    """Chats against the AI/ML API, persisted to a local JSON file."""

    def __init__(
        self,
        manager: ChatManager,
        store: JsonStore,
        api_key: str | None = None,
        history_by_default: bool = True,
    ):
        self.manager = manager
        self.store = store
        self.api_key = api_key or None
        self.history_by_default = history_by_default

    @classmethod
    async def start(cls, cfg: dict | None = None) -> "AimlChat":
        """
        Load saved state and fetch the model catalog.
        A corrupt save file or an unreachable catalog raises.
        """
        cfg = with_defaults(cfg) if cfg else get_config()
        transport = HttpTransport.from_config(cfg)
        store = JsonStore.from_config(cfg)
        manager = await store.load(
            transport,
            default_params=default_params(cfg),
            local_save=cfg["storage"].get("local_save", True),
        )
        logger.info(
            "Started with %d chats and %d models (base %s)",
            len(manager), len(manager.models), transport.base_url,
        )
        return cls(
            manager,
            store,
            api_key=cfg["api"].get("api_key"),
            history_by_default=cfg["chat"].get("history", True),
        )

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key or None

    def list_models(self) -> list[str]:
        return sorted(m.name for m in self.manager.models)

    def create_chat(self, model: str, title: str | None = None, history: bool | None = None) -> UUID:
        chat_id = self.manager.create_chat(Model(model))
        chat = self.manager.get_chat(chat_id)
        if title:
            chat.with_title(title)
        if self.history_by_default if history is None else history:
            chat.with_history()
        return chat_id

    def select_chat(self, chat_id: UUID) -> None:
        self.manager.set_current_chat(chat_id)

    def remove_chat(self, chat_id: UUID) -> None:
        self.manager.remove_chat(chat_id)

    def get_chat(self, chat_id: UUID) -> Chat | None:
        return self.manager.get_chat(chat_id)

    def current_chat(self) -> tuple[UUID, Chat] | None:
        return self.manager.get_current_chat()

    def resolve_chat_id(self, prefix: str) -> UUID:
        """Find a chat by full id or unique id prefix."""
        matches = [cid for cid in self.manager.chats if str(cid).startswith(prefix)]
        if len(matches) != 1:
            raise ChatNotFound(prefix)
        return matches[0]

    async def send(self, content: str, role: CompletionRole = CompletionRole.USER) -> str:
        """Send a message in the current chat and return the reply."""
        if not self.api_key:
            raise MissingCredential("no API key configured, set AIMLAPI_KEY or call set_api_key()")
        return await self.manager.send_current_chat_completion(
            self.api_key, Completion(role, content)
        )

    def save(self) -> None:
        self.store.save(self.manager)

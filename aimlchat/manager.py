"""ChatManager: registry of chats plus the "current chat" pointer."""

from __future__ import annotations

import logging
import uuid
from uuid import UUID

from aimlchat.chat import Chat
from aimlchat.errors import ChatNotFound
from aimlchat.models import Completion, GenerationParameters, Model
from aimlchat.transport import HttpTransport

logger = logging.getLogger(__name__)

NIL_UUID = UUID(int=0)


class ChatManager:
    """
    Keyed collection of chats.

    The current-chat marker is either None or the id of a live chat;
    removing that chat clears it.
    """

    def __init__(
        self,
        transport: HttpTransport | None = None,
        default_params: GenerationParameters | None = None,
        local_save: bool = True,
    ):
        self.transport = transport
        self.default_params = default_params or GenerationParameters()
        self.local_save = local_save
        self.models: set[Model] = set()
        self.current_chat: UUID | None = None
        self.chats: dict[UUID, Chat] = {}

    def __len__(self) -> int:
        return len(self.chats)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ChatManager):
            return NotImplemented
        return (
            self.current_chat == other.current_chat
            and self.chats == other.chats
            and self.local_save == other.local_save
        )

    def chat_exists(self, chat_id: UUID) -> bool:
        return chat_id in self.chats

    def create_chat(self, model: Model) -> UUID:
        """
        Create a chat and return its id.
        It becomes the current chat only if none is set.
        """
        chat_id = uuid.uuid4()
        while chat_id in self.chats:
            chat_id = uuid.uuid4()

        self.chats[chat_id] = Chat(
            model=model,
            global_params=self.default_params,
            transport=self.transport,
        )
        if self.current_chat is None:
            self.current_chat = chat_id

        logger.info(
            "Created chat %s with model '%s' (total chats: %d)",
            chat_id, model.name, len(self.chats),
        )
        return chat_id

    def remove_chat(self, chat_id: UUID) -> None:
        if not self.chat_exists(chat_id):
            raise ChatNotFound(chat_id)
        del self.chats[chat_id]
        if self.current_chat == chat_id:
            self.current_chat = None
        logger.info("Removed chat %s", chat_id)

    def get_chat(self, chat_id: UUID) -> Chat | None:
        return self.chats.get(chat_id)

    def set_current_chat(self, chat_id: UUID) -> None:
        """
        Callers check existence first, so a miss here means the registry
        and its caller disagree. Logged loudly before raising.
        """
        if not self.chat_exists(chat_id):
            logger.error("set_current_chat on unknown chat %s, please report this", chat_id)
            raise ChatNotFound(chat_id)
        self.current_chat = chat_id

    def get_current_chat(self) -> tuple[UUID, Chat] | None:
        if self.current_chat is None or not self.chat_exists(self.current_chat):
            return None
        return self.current_chat, self.chats[self.current_chat]

    def list_chats(self) -> list[tuple[UUID, Chat]]:
        return list(self.chats.items())

    def attach_transport(self, transport: HttpTransport) -> None:
        """Use transport for every chat, present and future."""
        self.transport = transport
        for chat in self.chats.values():
            chat.transport = transport

    async def send_current_chat_completion(self, api_key: str, message: Completion) -> str:
        current = self.get_current_chat()
        if current is None:
            raise ChatNotFound()
        _, chat = current
        return await chat.send_completion(api_key, message)

    def to_dict(self) -> dict:
        return {
            "current_chat": str(self.current_chat) if self.current_chat else None,
            "chats": {str(chat_id): chat.to_dict() for chat_id, chat in self.chats.items()},
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        transport: HttpTransport | None = None,
        local_save: bool = True,
        default_params: GenerationParameters | None = None,
    ) -> "ChatManager":
        manager = cls(transport=transport, default_params=default_params, local_save=local_save)
        for key, chat_data in data.get("chats", {}).items():
            manager.chats[UUID(key)] = Chat.from_dict(chat_data, transport=transport)

        current = data.get("current_chat")
        # the nil uuid also means "unset"
        if current and UUID(current) != NIL_UUID:
            current_id = UUID(current)
            # A dangling marker is dropped rather than kept
            if current_id in manager.chats:
                manager.current_chat = current_id
            else:
                logger.warning("Saved current chat %s no longer exists", current_id)
        return manager

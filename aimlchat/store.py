"""
JSON file storage for the chat registry.
Single portable file holding every chat, every history, every parameter
and the current-chat marker. Read once at startup, rewritten on save.

The model list inside the file is informational only; load() always
replaces it with a fresh catalog fetch.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from aimlchat.catalog import list_models
from aimlchat.errors import CorruptStore
from aimlchat.manager import ChatManager
from aimlchat.models import GenerationParameters, Model
from aimlchat.transport import HttpTransport

logger = logging.getLogger(__name__)


class JsonStore:
    """
    Save file for a ChatManager.
    Not safe for concurrent save() calls against the same path.
    """

    def __init__(self, path: str | Path = "save.json"):
        self.path = Path(path)

    @classmethod
    def from_config(cls, cfg: dict) -> "JsonStore":
        return cls(cfg.get("storage", {}).get("path", "save.json"))

    def exists(self) -> bool:
        return self.path.exists()

    def read(
        self,
        transport: HttpTransport | None = None,
        default_params: GenerationParameters | None = None,
    ) -> ChatManager | None:
        """Parse the save file. None on first run, CorruptStore if unreadable."""
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
            manager = ChatManager.from_dict(
                raw["chat_manager"],
                transport=transport,
                local_save=bool(raw.get("local_save", True)),
                default_params=default_params,
            )
            manager.models = {Model(name) for name in raw.get("models", [])}
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise CorruptStore(self.path, f"{type(e).__name__}: {e}") from e

        logger.info("Loaded %d chats from %s", len(manager), self.path)
        return manager

    async def load(
        self,
        transport: HttpTransport,
        default_params: GenerationParameters | None = None,
        local_save: bool = True,
    ) -> ChatManager:
        """
        Restore the registry (or start an empty one) and refresh its
        model catalog. Both a corrupt file and a failed fetch raise.
        """
        manager = self.read(transport=transport, default_params=default_params)
        if manager is None:
            logger.info("No save file at %s, starting fresh", self.path)
            manager = ChatManager(
                transport=transport,
                default_params=default_params,
                local_save=local_save,
            )

        manager.models = await list_models(transport)
        return manager

    def save(self, manager: ChatManager) -> None:
        """Write the whole registry, replacing previous content."""
        if not manager.local_save:
            logger.debug("Local save disabled, not writing %s", self.path)
            return

        payload = {
            "local_save": manager.local_save,
            "models": sorted(m.name for m in manager.models),
            "chat_manager": manager.to_dict(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # write beside the target and swap, so a crash never leaves half a file
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        logger.debug("Saved %d chats to %s", len(manager), self.path)

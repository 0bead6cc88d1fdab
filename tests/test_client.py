"""
Tests for the AimlChat facade.
Run with: pytest tests/test_client.py
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

from aimlchat import config
from aimlchat.client import AimlChat
from aimlchat.errors import ChatNotFound, MissingCredential
from aimlchat.models import CompletionRole, GenerationParameters
from aimlchat.transport import HttpResponse


@pytest.fixture
def cfg(tmp_path):
    config.reset_config()
    cfg = config.load_config(tmp_path / "missing.yaml")
    cfg["storage"]["path"] = str(tmp_path / "save.json")
    cfg["api"]["base_url"] = "http://mock"
    cfg["api"]["api_key"] = ""
    cfg["chat"]["defaults"]["max_tokens"] = 128
    yield cfg
    config.reset_config()


def _catalog():
    return HttpResponse(status_code=200, text=json.dumps({"gpt-4o": "", "llama-3": ""}))


def _reply(content):
    return HttpResponse(
        status_code=201,
        text=json.dumps({"choices": [{"message": {"content": content}}]}),
    )


async def _start(cfg) -> AimlChat:
    with patch("aimlchat.transport.HttpTransport.get", new=AsyncMock(return_value=_catalog())):
        return await AimlChat.start(cfg)


@pytest.mark.asyncio
async def test_start_fetches_models(cfg):
    """start() loads the catalog into the registry."""
    app = await _start(cfg)
    assert app.list_models() == ["gpt-4o", "llama-3"]
    assert app.api_key is None


@pytest.mark.asyncio
async def test_create_chat_applies_options(cfg):
    """Title, history and configured defaults land on the chat."""
    app = await _start(cfg)
    chat_id = app.create_chat("gpt-4o", title="notes")
    chat = app.get_chat(chat_id)
    assert chat.title == "notes"
    assert chat.history_enabled
    assert chat.global_params == GenerationParameters(max_tokens=128)
    assert app.current_chat()[0] == chat_id

    other = app.get_chat(app.create_chat("llama-3", history=False))
    assert not other.history_enabled


@pytest.mark.asyncio
async def test_send_requires_api_key(cfg):
    """No key, no request."""
    app = await _start(cfg)
    app.create_chat("gpt-4o")
    with pytest.raises(MissingCredential):
        await app.send("hello")


@pytest.mark.asyncio
async def test_send_in_current_chat(cfg):
    """send() goes through the current chat and returns the reply."""
    app = await _start(cfg)
    chat_id = app.create_chat("gpt-4o")
    app.set_api_key("sk-test")

    with patch("aimlchat.transport.HttpTransport.post", new=AsyncMock(return_value=_reply("hi!"))) as post:
        reply = await app.send("hello")

    assert reply == "hi!"
    headers = post.call_args.args[2]
    assert headers == {"Authorization": "Bearer sk-test"}
    history = app.get_chat(chat_id).history
    assert [c.content for c in history] == ["hi!", "hello"]


@pytest.mark.asyncio
async def test_send_as_system(cfg):
    """System messages go out with the system role."""
    app = await _start(cfg)
    chat_id = app.create_chat("gpt-4o")
    app.set_api_key("sk-test")

    with patch("aimlchat.transport.HttpTransport.post", new=AsyncMock(return_value=_reply("ok"))):
        await app.send("be terse", role=CompletionRole.SYSTEM)

    assert app.get_chat(chat_id).history[1].role is CompletionRole.SYSTEM


@pytest.mark.asyncio
async def test_send_without_chat_raises(cfg):
    """No current chat is ChatNotFound."""
    app = await _start(cfg)
    app.set_api_key("sk-test")
    with pytest.raises(ChatNotFound):
        await app.send("hello")


@pytest.mark.asyncio
async def test_select_and_remove(cfg):
    """select_chat moves the marker, remove_chat clears it."""
    app = await _start(cfg)
    app.create_chat("gpt-4o")
    second = app.create_chat("llama-3")
    app.select_chat(second)
    assert app.current_chat()[0] == second

    app.remove_chat(second)
    assert app.current_chat() is None


@pytest.mark.asyncio
async def test_resolve_chat_id_by_prefix(cfg):
    """A unique prefix finds the chat, unknown prefixes don't."""
    app = await _start(cfg)
    chat_id = app.create_chat("gpt-4o")
    assert app.resolve_chat_id(str(chat_id)[:8]) == chat_id
    with pytest.raises(ChatNotFound):
        app.resolve_chat_id("zzzz")


@pytest.mark.asyncio
async def test_save_and_restart(cfg):
    """State written by save() comes back on the next start()."""
    app = await _start(cfg)
    chat_id = app.create_chat("gpt-4o", title="keep me")
    app.save()

    again = await _start(cfg)

    assert again.current_chat()[0] == chat_id
    assert again.get_chat(chat_id).title == "keep me"


@pytest.mark.asyncio
async def test_start_with_partial_config(tmp_path, monkeypatch):
    """Sections left out of a caller-built config fall back to defaults."""
    monkeypatch.delenv("AIMLAPI_KEY", raising=False)
    app = await _start({"storage": {"path": str(tmp_path / "save.json")}})

    assert app.list_models() == ["gpt-4o", "llama-3"]
    assert app.history_by_default is True
    assert app.store.path == tmp_path / "save.json"

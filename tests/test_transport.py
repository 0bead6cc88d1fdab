"""
Tests for the HTTP transport and the model catalog fetch.
Run with: pytest tests/test_transport.py
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from aimlchat.catalog import list_models
from aimlchat.errors import CatalogParseError, TransportError
from aimlchat.models import Model
from aimlchat.transport import BASE_API_URL, HttpResponse, HttpTransport


def _mock_client(mock_client_cls, resp=None, exc=None):
    mock_client = AsyncMock()
    if exc is not None:
        mock_client.post.side_effect = exc
        mock_client.get.side_effect = exc
    else:
        mock_client.post.return_value = resp
        mock_client.get.return_value = resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _resp(status=200, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


# ---------------------------------------------------------------------------
# HttpTransport
# ---------------------------------------------------------------------------

def test_transport_defaults():
    """Default origin is the public API, trailing slash stripped."""
    assert HttpTransport().base_url == BASE_API_URL
    assert HttpTransport(base_url="http://mock:8080/").base_url == "http://mock:8080"


def test_transport_from_config():
    """Base url and timeout come from the api section."""
    t = HttpTransport.from_config({"api": {"base_url": "http://mock", "timeout": 5}})
    assert t.base_url == "http://mock"
    assert t.timeout == 5


@pytest.mark.asyncio
async def test_post_success():
    """POST returns status and body untouched."""
    t = HttpTransport(base_url="http://fake")
    with patch("aimlchat.transport.httpx.AsyncClient") as mock_client_cls:
        client = _mock_client(mock_client_cls, _resp(201, '{"ok": true}'))

        result = await t.post("/chat/completions", {"model": "m"}, {"Authorization": "Bearer k"})

        client.post.assert_awaited_once_with(
            "http://fake/chat/completions",
            json={"model": "m"},
            headers={"Authorization": "Bearer k"},
        )
        assert result.status_code == 201
        assert result.json() == {"ok": True}


@pytest.mark.asyncio
async def test_post_error_status_is_not_raised():
    """Non-2xx statuses are returned, judging them is the caller's job."""
    t = HttpTransport(base_url="http://fake")
    with patch("aimlchat.transport.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, _resp(500, "boom"))
        result = await t.post("/chat/completions", {})
        assert result.status_code == 500
        assert result.text == "boom"


@pytest.mark.asyncio
async def test_post_timeout_raises_transport_error():
    """Timeouts become TransportError."""
    t = HttpTransport(base_url="http://fake", timeout=1)
    with patch("aimlchat.transport.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, exc=httpx.TimeoutException("timed out"))
        with pytest.raises(TransportError, match="Timeout"):
            await t.post("/chat/completions", {})


@pytest.mark.asyncio
async def test_get_connect_error_raises_transport_error():
    """Connection failures become TransportError."""
    t = HttpTransport(base_url="http://fake")
    with patch("aimlchat.transport.httpx.AsyncClient") as mock_client_cls:
        _mock_client(mock_client_cls, exc=httpx.ConnectError("refused"))
        with pytest.raises(TransportError):
            await t.get("/models")


def test_http_response_json_invalid():
    """json() raises ValueError on a non-JSON body."""
    with pytest.raises(ValueError):
        HttpResponse(status_code=200, text="nope").json()


# ---------------------------------------------------------------------------
# list_models
# ---------------------------------------------------------------------------

def _catalog_transport(status=200, text=""):
    transport = MagicMock()
    transport.get = AsyncMock(return_value=HttpResponse(status_code=status, text=text))
    return transport


@pytest.mark.asyncio
async def test_list_models_keys_become_models():
    """Keys of the listing are the model names, values ignored."""
    transport = _catalog_transport(text=json.dumps({"gpt-4o": "openai", "llama-3": "meta"}))

    models = await list_models(transport)

    transport.get.assert_awaited_once_with("/models")
    assert models == {Model("gpt-4o"), Model("llama-3")}


@pytest.mark.asyncio
async def test_list_models_empty_object():
    """An empty listing is an empty set, not an error."""
    assert await list_models(_catalog_transport(text="{}")) == set()


@pytest.mark.asyncio
async def test_list_models_bad_status():
    """Non-2xx listing is a transport failure."""
    with pytest.raises(TransportError):
        await list_models(_catalog_transport(status=503, text="down"))


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["not json", "[1, 2]", '"gpt-4o"'])
async def test_list_models_parse_errors(text):
    """Undecodable or non-object bodies raise CatalogParseError."""
    with pytest.raises(CatalogParseError):
        await list_models(_catalog_transport(text=text))


@pytest.mark.asyncio
async def test_list_models_propagates_transport_error():
    """Transport failures pass straight through."""
    transport = MagicMock()
    transport.get = AsyncMock(side_effect=TransportError("refused"))
    with pytest.raises(TransportError):
        await list_models(transport)

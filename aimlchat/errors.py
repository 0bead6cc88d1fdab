"""
Exception hierarchy for aimlchat.
Everything raised by the library derives from AimlChatError.
"""

from __future__ import annotations


class AimlChatError(Exception):
    """Base class for all aimlchat errors."""


class ChatNotFound(AimlChatError):
    """The referenced chat id is not in the registry."""

    def __init__(self, chat_id=None):
        self.chat_id = chat_id
        if chat_id is None:
            super().__init__("no current chat")
        else:
            super().__init__(f"chat does not exist: {chat_id}")


class MissingCredential(AimlChatError):
    """No API key configured."""

    def __init__(self, message: str = "no API key configured"):
        super().__init__(message)


class NoTransport(AimlChatError):
    """The chat was built without a transport, so nothing can be sent."""

    def __init__(self, message: str = "chat has no transport attached"):
        super().__init__(message)


class TransportError(AimlChatError):
    """Network or connection failure talking to the API."""


class UnexpectedStatus(AimlChatError):
    """The completions endpoint answered with something other than 201."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"request failed with HTTP {status_code}")


class ParseError(AimlChatError):
    """A payload did not have the expected shape."""


class MalformedResponse(ParseError):
    """A completion response is missing choices[0].message.content."""


class CatalogParseError(ParseError):
    """The model listing could not be decoded."""


class CorruptStore(ParseError):
    """The save file exists but cannot be read back."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"corrupt save file {path}: {reason}")

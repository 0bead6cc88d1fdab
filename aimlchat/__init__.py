"""
aimlchat: chat sessions against the AI/ML API.
Registry of chats, per-chat history, and a JSON save file.
"""
from aimlchat.chat import Chat
from aimlchat.client import AimlChat
from aimlchat.manager import ChatManager
from aimlchat.models import Completion, CompletionRole, GenerationParameters, Model
from aimlchat.store import JsonStore
from aimlchat.transport import HttpTransport

__version__ = "0.1.0"

__all__ = [
    "AimlChat",
    "Chat",
    "ChatManager",
    "Completion",
    "CompletionRole",
    "GenerationParameters",
    "HttpTransport",
    "JsonStore",
    "Model",
]

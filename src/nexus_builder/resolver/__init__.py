"""Natural-language command resolution with session memory and a heuristic fallback."""

from .heuristics import HEURISTIC_CONFIDENCE, HeuristicCommandMatcher, HeuristicMatch
from .model_client import (
    ChatModelClient,
    ModelReply,
    ModelReplyError,
    ModelUnavailableError,
    OpenAIChatClient,
    parse_model_reply,
)
from .prompt import build_system_prompt
from .resolver import CommandResolver, Resolution
from .session import Message, Session, SessionContext, SessionStore

__all__ = [
    "ChatModelClient",
    "CommandResolver",
    "HEURISTIC_CONFIDENCE",
    "HeuristicCommandMatcher",
    "HeuristicMatch",
    "Message",
    "ModelReply",
    "ModelReplyError",
    "ModelUnavailableError",
    "OpenAIChatClient",
    "Resolution",
    "Session",
    "SessionContext",
    "SessionStore",
    "build_system_prompt",
    "parse_model_reply",
]

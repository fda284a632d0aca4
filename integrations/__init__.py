"""Collaborators the clinic views call into: notifications, auth, AI, webhooks."""

from .assistant import (
    AssistantError,
    AssistantResponseError,
    AssistantUnavailableError,
    ProcedureAssistant,
    ProcedureSuggestion,
)
from .auth import AuthService, User
from .notifications import Notification, NotificationCenter
from .webhooks import ChangeFeed

__all__ = [
    "AssistantError",
    "AssistantResponseError",
    "AssistantUnavailableError",
    "AuthService",
    "ChangeFeed",
    "Notification",
    "NotificationCenter",
    "ProcedureAssistant",
    "ProcedureSuggestion",
    "User",
]

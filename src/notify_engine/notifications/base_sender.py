"""
Base Sender

Abstract interface for notification delivery channels.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..models.notification import ChannelType, NotificationRequest
from ..models.template import RenderedContent


@dataclass
class SendResult:
    """
    Result of a send attempt.

    retryable is False for failures that can never succeed on a later
    attempt (unsupported channel, malformed recipient).
    """
    success: bool
    external_id: Optional[str] = None
    error: Optional[str] = None
    retryable: bool = True

    @classmethod
    def permanent_failure(cls, error: str) -> "SendResult":
        return cls(success=False, error=error, retryable=False)


class BaseSender(ABC):
    """Abstract notification sender, one implementation per channel"""

    channel_type: ChannelType

    @abstractmethod
    async def send(self, request: NotificationRequest, content: RenderedContent) -> SendResult:
        """
        Send a notification.

        Args:
            request: The originating request (recipient, user, type, priority)
            content: Rendered template fields
        Returns:
            SendResult with success flag, transport id and optional error
        """
        ...

    async def close(self):
        """Cleanup resources"""
        pass

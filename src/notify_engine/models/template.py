"""
Template Models

NotificationTemplate: operator-managed content for a (type, channel) pair.
RenderedContent: template fields after variable substitution.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from .notification import ChannelType, NotificationPriority, NotificationType, utcnow


@dataclass
class NotificationTemplate:
    """
    Notification template.

    template_key is unique and derived from the type and channel,
    e.g. 'payment_failed_email'. Only active templates are used for sending.
    Which content slots are meaningful depends on the channel:
    - email: subject_template, html_template, text_template
    - sms: text_template
    - push: push_title, push_body
    - in_app: subject_template (title), text_template (message)
    """
    template_key: str
    channel_type: ChannelType
    notification_type: NotificationType
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    priority: NotificationPriority = NotificationPriority.NORMAL

    subject_template: Optional[str] = None
    html_template: Optional[str] = None
    text_template: Optional[str] = None
    push_title: Optional[str] = None
    push_body: Optional[str] = None

    variables: List[str] = field(default_factory=list)  # declared variable names
    is_active: bool = True

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response"""
        return {
            "id": str(self.id),
            "template_key": self.template_key,
            "name": self.name,
            "channel_type": self.channel_type.value,
            "notification_type": self.notification_type.value,
            "priority": self.priority.value,
            "subject_template": self.subject_template,
            "html_template": self.html_template,
            "text_template": self.text_template,
            "push_title": self.push_title,
            "push_body": self.push_body,
            "variables": self.variables,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class RenderedContent:
    """Content ready to hand to a channel sender"""
    subject: str = ""
    html: str = ""
    text: str = ""
    push_title: str = ""
    push_body: str = ""

    def for_channel(self, channel: ChannelType) -> dict:
        """Channel-shaped view of the rendered fields"""
        if channel == ChannelType.PUSH:
            return {"push_title": self.push_title, "push_body": self.push_body}
        if channel == ChannelType.SMS:
            return {"text": self.text}
        return {"subject": self.subject, "html": self.html, "text": self.text}

    def preview_source(self) -> str:
        """Best field to build a log preview from"""
        return self.text or self.html or self.push_body or self.subject

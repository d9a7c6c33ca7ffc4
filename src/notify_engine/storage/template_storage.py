"""
Template Storage

PostgreSQL storage for notification templates.
"""
import logging
from typing import Optional

from .base import BaseStorage, affected_rows
from ..models.notification import ChannelType, NotificationPriority, NotificationType
from ..models.template import NotificationTemplate

logger = logging.getLogger("notify.storage.template")


class TemplateStorage(BaseStorage):
    """Storage for NotificationTemplate entities"""

    async def get_active(
        self, template_key: str, channel_type: ChannelType
    ) -> Optional[NotificationTemplate]:
        """Get the active template for a key and channel"""
        query = """
            SELECT * FROM notification_templates
            WHERE template_key = $1 AND channel_type = $2 AND is_active = true
        """
        row = await self.fetchrow(query, template_key, channel_type.value)
        return self._row_to_template(row) if row else None

    async def get_by_key(self, template_key: str) -> Optional[NotificationTemplate]:
        """Get template by key regardless of active flag"""
        query = "SELECT * FROM notification_templates WHERE template_key = $1"
        row = await self.fetchrow(query, template_key)
        return self._row_to_template(row) if row else None

    async def upsert(self, template: NotificationTemplate) -> NotificationTemplate:
        """Create or replace a template by key"""
        query = """
            INSERT INTO notification_templates (
                id, template_key, name, channel_type, notification_type, priority,
                subject_template, html_template, text_template, push_title, push_body,
                variables, is_active, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15)
            ON CONFLICT (template_key) DO UPDATE
            SET name = EXCLUDED.name,
                channel_type = EXCLUDED.channel_type,
                notification_type = EXCLUDED.notification_type,
                priority = EXCLUDED.priority,
                subject_template = EXCLUDED.subject_template,
                html_template = EXCLUDED.html_template,
                text_template = EXCLUDED.text_template,
                push_title = EXCLUDED.push_title,
                push_body = EXCLUDED.push_body,
                variables = EXCLUDED.variables,
                is_active = EXCLUDED.is_active,
                updated_at = EXCLUDED.updated_at
            RETURNING *
        """
        row = await self.fetchrow(
            query,
            template.id, template.template_key, template.name,
            template.channel_type.value, template.notification_type.value,
            template.priority.value,
            template.subject_template, template.html_template, template.text_template,
            template.push_title, template.push_body,
            template.variables, template.is_active,
            template.created_at, template.updated_at
        )
        return self._row_to_template(row)

    async def deactivate(self, template_key: str) -> bool:
        """Deactivate template"""
        query = """
            UPDATE notification_templates
            SET is_active = false, updated_at = NOW()
            WHERE template_key = $1
        """
        result = await self.execute(query, template_key)
        return affected_rows(result) == 1

    def _row_to_template(self, row) -> NotificationTemplate:
        """Convert database row to NotificationTemplate"""
        return NotificationTemplate(
            id=row["id"],
            template_key=row["template_key"],
            name=row["name"],
            channel_type=ChannelType(row["channel_type"]),
            notification_type=NotificationType(row["notification_type"]),
            priority=NotificationPriority(row["priority"]),
            subject_template=row["subject_template"],
            html_template=row["html_template"],
            text_template=row["text_template"],
            push_title=row["push_title"],
            push_body=row["push_body"],
            variables=list(row["variables"] or []),
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

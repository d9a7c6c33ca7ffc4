"""
Template Service

Resolves templates by key and channel and substitutes {{variable}} tokens.
"""
import logging
import re
from typing import Any, Dict, Optional

from .cache import MISSING, TTLCache
from ..models.notification import ChannelType, NotificationType
from ..models.template import NotificationTemplate, RenderedContent
from ..storage.template_storage import TemplateStorage

logger = logging.getLogger("notify.services.template")

VARIABLE_RE = re.compile(r"\{\{(\w+)\}\}")

# template_override key -> RenderedContent field
OVERRIDE_FIELDS = {"subject": "subject", "html": "html", "text": "text"}


class TemplateNotFoundError(LookupError):
    """No active template for (template_key, channel)"""

    def __init__(self, template_key: str, channel_type: ChannelType):
        self.template_key = template_key
        self.channel_type = channel_type
        super().__init__(f"Template not found for {template_key}:{channel_type.value}")


def template_key(notification_type: NotificationType, channel_type: ChannelType) -> str:
    """Key used to look up the template for a type/channel pair"""
    return f"{notification_type.value}_{channel_type.value}"


def substitute(text: Optional[str], variables: Dict[str, Any]) -> str:
    """
    Replace every {{name}} with the string form of variables[name].

    Missing or None variables become ''. Substituted values are not re-scanned.
    """
    if not text:
        return ""

    def _replace(match: re.Match) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return VARIABLE_RE.sub(_replace, text)


class TemplateService:
    """Template lookup (cached) and rendering"""

    def __init__(self, storage: TemplateStorage, cache_ttl: float = 300.0):
        self.storage = storage
        self.cache: TTLCache = TTLCache("template", ttl=cache_ttl)

    async def get_template(
        self, key: str, channel_type: ChannelType
    ) -> Optional[NotificationTemplate]:
        """
        Active template for (key, channel), loaded lazily on cache miss.

        Only found templates are cached; a missing one is looked up again
        on the next call so templates created elsewhere are picked up.
        """
        cache_key = (key, channel_type)
        cached = self.cache.get(cache_key, MISSING)
        if cached is not MISSING:
            return cached

        template = await self.storage.get_active(key, channel_type)
        if template is None:
            logger.warning(f"No active template for {key}:{channel_type.value}")
            return None
        self.cache.set(cache_key, template)
        return template

    async def render(
        self,
        key: str,
        channel_type: ChannelType,
        variables: Dict[str, Any],
        override: Optional[Dict[str, str]] = None,
    ) -> RenderedContent:
        """
        Render the template for (key, channel).

        Override fields (subject/html/text) replace the template's before
        substitution; with an override, a missing template is not an error.

        Raises:
            TemplateNotFoundError: no active template and no override content
        """
        template = await self.get_template(key, channel_type)
        override = {k: v for k, v in (override or {}).items() if k in OVERRIDE_FIELDS and v}

        if template is None and not override:
            raise TemplateNotFoundError(key, channel_type)

        return self.render_template(template, variables, override)

    @staticmethod
    def render_template(
        template: Optional[NotificationTemplate],
        variables: Dict[str, Any],
        override: Optional[Dict[str, str]] = None,
    ) -> RenderedContent:
        """Pure rendering of a template (or override-only content)"""
        override = override or {}
        sources = {
            "subject": template.subject_template if template else None,
            "html": template.html_template if template else None,
            "text": template.text_template if template else None,
            "push_title": template.push_title if template else None,
            "push_body": template.push_body if template else None,
        }
        for key, field_name in OVERRIDE_FIELDS.items():
            if override.get(key):
                sources[field_name] = override[key]

        return RenderedContent(
            **{name: substitute(text, variables) for name, text in sources.items()}
        )

    async def save_template(self, template: NotificationTemplate) -> NotificationTemplate:
        """Create or update a template and drop its cache entry"""
        saved = await self.storage.upsert(template)
        self._invalidate_key(saved.template_key)
        logger.info(f"Saved template {saved.template_key}")
        return saved

    async def deactivate_template(self, key: str) -> bool:
        """Deactivate a template and drop its cache entries"""
        deactivated = await self.storage.deactivate(key)
        self._invalidate_key(key)
        return deactivated

    def _invalidate_key(self, key: str):
        for channel_type in ChannelType:
            self.cache.invalidate((key, channel_type))

    async def get_template_by_key(self, key: str) -> Optional[NotificationTemplate]:
        """Uncached lookup for the admin surface"""
        return await self.storage.get_by_key(key)

"""
Notification Routes

Endpoints for sending, queue inspection, delivery log and transport
callbacks, preferences, templates and channel switches.
"""
import logging
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field

from ..models.delivery_log import DeliveryStatus
from ..models.notification import (
    ChannelType,
    NotificationPriority,
    NotificationRequest,
    NotificationType,
)
from ..models.preference import Frequency, NotificationPreference
from ..models.queue_item import QueueStatus
from ..models.template import NotificationTemplate
from ..services.engine_service import get_engine_service
from ..services.template_service import template_key
from .auth import get_current_user, require_admin

logger = logging.getLogger("notify.routes.notifications")
router = APIRouter(prefix="/notifications", tags=["notifications"])


# ============================================
# Request/Response Models
# ============================================

class TemplateOverride(BaseModel):
    """One-off content replacing template fields"""
    subject: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None


class SendNotificationRequest(BaseModel):
    """Single notification"""
    user_id: str
    recipient: str                          # email, phone number or device token
    type: NotificationType
    channel_type: ChannelType
    priority: Optional[NotificationPriority] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    scheduled_at: Optional[datetime] = None
    template_override: Optional[TemplateOverride] = None

    def to_request(self) -> NotificationRequest:
        scheduled_at = self.scheduled_at
        if scheduled_at is not None and scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
        override = None
        if self.template_override:
            override = {k: v for k, v in self.template_override.model_dump().items() if v}
        return NotificationRequest(
            user_id=self.user_id,
            recipient=self.recipient,
            type=self.type,
            channel_type=self.channel_type,
            priority=self.priority,
            data=dict(self.data),
            scheduled_at=scheduled_at,
            template_override=override or None,
        )


class BatchNotificationRequest(BaseModel):
    """Batch of notifications with an optional default priority"""
    notifications: List[SendNotificationRequest]
    priority: Optional[NotificationPriority] = None


class NotificationResultResponse(BaseModel):
    success: bool
    message: str
    notification_id: Optional[str] = None
    queue_id: Optional[str] = None
    error: Optional[str] = None
    timestamp: str


class LifecycleEventRequest(BaseModel):
    """Transport callback"""
    event: DeliveryStatus
    timestamp: Optional[datetime] = None


class PreferenceItem(BaseModel):
    notification_type: NotificationType
    channel_type: ChannelType
    enabled: bool = True
    frequency: Frequency = Frequency.IMMEDIATE
    quiet_hours_start: Optional[time] = None
    quiet_hours_end: Optional[time] = None


class UpdatePreferencesRequest(BaseModel):
    preferences: List[PreferenceItem]


class TemplateRequest(BaseModel):
    """Create or replace a template"""
    channel_type: ChannelType
    notification_type: NotificationType
    name: str = ""
    priority: NotificationPriority = NotificationPriority.NORMAL
    subject_template: Optional[str] = None
    html_template: Optional[str] = None
    text_template: Optional[str] = None
    push_title: Optional[str] = None
    push_body: Optional[str] = None
    variables: List[str] = Field(default_factory=list)
    is_active: bool = True


class ChannelSwitchRequest(BaseModel):
    is_enabled: bool


# ============================================
# Send Routes
# ============================================

@router.post("/send", response_model=NotificationResultResponse)
async def send_notification(
    request: SendNotificationRequest,
    current_user: dict = Depends(get_current_user),
):
    """Send a notification now, or queue it when scheduled_at is in the future"""
    engine = get_engine_service()
    result = await engine.notification_service.send_notification(request.to_request())
    return NotificationResultResponse(**result.to_dict())


@router.post("/batch")
async def send_batch(
    request: BatchNotificationRequest,
    current_user: dict = Depends(get_current_user),
):
    """Send a batch; results are grouped by (channel, type)"""
    engine = get_engine_service()
    batch = await engine.notification_service.send_batch(
        [n.to_request() for n in request.notifications],
        priority=request.priority,
    )
    return batch.to_dict()


# ============================================
# Queue Routes
# ============================================

def _scope_user(current_user: dict, user_id: Optional[str]) -> Optional[str]:
    """Admins may look at anyone (or everyone); others only at themselves"""
    if current_user["is_admin"]:
        return user_id
    return current_user["user_id"]


@router.get("/queue")
async def list_queue(
    user_id: Optional[str] = None,
    status: Optional[QueueStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
):
    """List queued notifications, newest first"""
    engine = get_engine_service()
    items, total = await engine.queue_service.list_items(
        _scope_user(current_user, user_id), status, limit, offset
    )
    return {"items": [i.to_dict() for i in items], "total": total}


async def _get_visible_item(item_id: UUID, current_user: dict):
    engine = get_engine_service()
    item = await engine.queue_service.get(item_id)
    if not item or (not current_user["is_admin"] and item.user_id != current_user["user_id"]):
        raise HTTPException(status_code=404, detail="Queue item not found")
    return item


@router.get("/queue/{item_id}")
async def get_queue_item(
    item_id: UUID,
    current_user: dict = Depends(get_current_user),
):
    """Get a queued notification"""
    item = await _get_visible_item(item_id, current_user)
    return item.to_dict()


@router.post("/queue/{item_id}/cancel")
async def cancel_queue_item(
    item_id: UUID,
    current_user: dict = Depends(get_current_user),
):
    """Cancel a pending notification"""
    await _get_visible_item(item_id, current_user)
    engine = get_engine_service()
    if not await engine.queue_service.cancel(item_id):
        raise HTTPException(status_code=409, detail="Only pending items can be cancelled")
    return {"success": True, "id": str(item_id)}


# ============================================
# Delivery Log Routes
# ============================================

@router.get("/log")
async def get_log(
    user_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
):
    """Delivery log, newest first"""
    engine = get_engine_service()
    entries, total = await engine.delivery_log_service.list_logs(
        _scope_user(current_user, user_id), limit, offset
    )
    return {"items": [e.to_dict() for e in entries], "total": total}


@router.post("/log/{log_id}/events")
async def append_log_event(
    log_id: UUID,
    request: LifecycleEventRequest,
    current_user: dict = Depends(require_admin),
):
    """Transport lifecycle callback (delivered, opened, clicked, bounced, complained)"""
    engine = get_engine_service()
    entry = await engine.delivery_log_service.append_event(
        log_id, request.event, request.timestamp
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Log entry not found")
    return entry.to_dict()


@router.post("/log/external/{external_id}/events")
async def append_external_log_event(
    external_id: str,
    request: LifecycleEventRequest,
    current_user: dict = Depends(require_admin),
):
    """Transport callback addressed by the provider's message id (e.g. Resend webhooks)"""
    engine = get_engine_service()
    entry = await engine.delivery_log_service.append_event_by_external_id(
        external_id, request.event, request.timestamp
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Log entry not found")
    return entry.to_dict()


# ============================================
# In-app Feed
# ============================================

@router.get("/inbox")
async def get_inbox(
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
):
    """Unexpired in-app notifications for the current user"""
    engine = get_engine_service()
    notifications = await engine.in_app_storage.list_by_user(current_user["user_id"], limit)
    return [n.to_dict() for n in notifications]


# ============================================
# Preference Routes
# ============================================

@router.get("/preferences")
async def get_preferences(current_user: dict = Depends(get_current_user)):
    """Notification preferences of the current user"""
    engine = get_engine_service()
    preferences = await engine.preference_service.list_preferences(current_user["user_id"])
    return [p.to_dict() for p in preferences]


@router.put("/preferences")
async def update_preferences(
    request: UpdatePreferencesRequest,
    current_user: dict = Depends(get_current_user),
):
    """Create or update preferences of the current user"""
    engine = get_engine_service()
    preferences = [
        NotificationPreference(user_id=current_user["user_id"], **p.model_dump())
        for p in request.preferences
    ]
    count = await engine.preference_service.save_preferences(preferences)
    return {"success": True, "updated": count}


# ============================================
# Template Routes
# ============================================

@router.get("/templates/{key}")
async def get_template(
    key: str,
    current_user: dict = Depends(require_admin),
):
    """Get a template by key"""
    engine = get_engine_service()
    template = await engine.template_service.get_template_by_key(key)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template.to_dict()


@router.put("/templates/{key}")
async def put_template(
    key: str,
    request: TemplateRequest,
    current_user: dict = Depends(require_admin),
):
    """Create or replace a template"""
    expected = template_key(request.notification_type, request.channel_type)
    if key != expected:
        raise HTTPException(
            status_code=400,
            detail=f"Template key must be '{expected}' for this type and channel",
        )

    engine = get_engine_service()
    template = NotificationTemplate(template_key=key, **request.model_dump())
    saved = await engine.template_service.save_template(template)
    return saved.to_dict()


# ============================================
# Channel Routes
# ============================================

@router.put("/channels/{channel_type}")
async def set_channel(
    channel_type: ChannelType,
    request: ChannelSwitchRequest,
    current_user: dict = Depends(require_admin),
):
    """Globally enable or disable a channel"""
    engine = get_engine_service()
    settings = await engine.dispatcher.set_channel_enabled(channel_type, request.is_enabled)
    logger.info(
        f"Channel {channel_type.value} set to {request.is_enabled} by {current_user['user_id']}"
    )
    return settings.to_dict()

"""
Notification Service

Orchestrates the notification pipeline:
preference gate -> channel switch -> schedule or (render -> send -> log).
Queue items claimed by the scheduler re-enter the same dispatch path.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from .batch_grouper import group
from .channel_dispatcher import ChannelDispatcher
from .delivery_log_service import DeliveryLogService
from .preference_service import PreferenceService
from .queue_service import QueueService
from .template_service import TemplateNotFoundError, TemplateService, template_key
from ..models.delivery_log import DeliveryLogEntry, DeliveryStatus
from ..models.notification import (
    BatchNotificationResult,
    ChannelType,
    GroupSummary,
    NotificationPriority,
    NotificationRequest,
    NotificationResult,
    utcnow,
)
from ..models.queue_item import QueueItem
from ..models.template import RenderedContent
from ..notifications.base_sender import SendResult

logger = logging.getLogger("notify.services.notification")

CHANNEL_NAMES = {
    ChannelType.EMAIL: "Email",
    ChannelType.SMS: "SMS",
    ChannelType.PUSH: "Push",
    ChannelType.IN_APP: "In-app",
}


class NotificationService:
    """
    Notification delivery orchestrator.

    For each request:
    1. Asks PreferenceService whether the user accepts it (block = success)
    2. Checks the global channel switch (off = success, blocked)
    3. Future scheduled_at: stores a QueueItem and returns its id
    4. Otherwise renders, sends through the channel's sender, and logs
       the attempt; a log write failure never changes the send result

    Never raises for a single request: every outcome is a NotificationResult.
    """

    def __init__(
        self,
        preference_service: PreferenceService,
        template_service: TemplateService,
        dispatcher: ChannelDispatcher,
        queue_service: QueueService,
        log_service: DeliveryLogService,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.preference_service = preference_service
        self.template_service = template_service
        self.dispatcher = dispatcher
        self.queue_service = queue_service
        self.log_service = log_service
        self._clock = clock

    async def send_notification(self, request: NotificationRequest) -> NotificationResult:
        """Send (or schedule) a single notification"""
        try:
            decision = await self.preference_service.check(
                request.user_id, request.type, request.channel_type
            )
            if not decision.allowed:
                logger.info(
                    f"Blocked {request.type.value}/{request.channel_type.value} "
                    f"for user {request.user_id}: {decision.reason}"
                )
                return NotificationResult(
                    success=True,
                    message=f"Notification blocked by user preferences: {decision.reason}",
                )

            if not await self.dispatcher.is_channel_enabled(request.channel_type):
                logger.info(f"Channel {request.channel_type.value} disabled, skipping user {request.user_id}")
                return NotificationResult(
                    success=True,
                    message=f"Notification blocked: channel '{request.channel_type.value}' is disabled",
                )

            if request.scheduled_at and request.scheduled_at > self._clock():
                return await self._schedule(request)

            return await self._dispatch(request)

        except Exception as e:
            logger.error(f"Notification pipeline error for user {request.user_id}: {e}")
            return NotificationResult(
                success=False,
                message="Notification service error",
                error=str(e),
            )

    async def send_batch(
        self,
        requests: List[NotificationRequest],
        priority: Optional[NotificationPriority] = None,
    ) -> BatchNotificationResult:
        """
        Send a batch grouped by (channel, type).

        Results follow group order, input order within a group.
        Policy blocks count as sent.
        """
        batch = BatchNotificationResult()
        groups = group(requests)
        logger.info(f"Batch of {len(requests)} notification(s) in {len(groups)} group(s)")

        for (channel_type, notification_type), items in groups.items():
            summary = GroupSummary(
                channel_type=channel_type,
                notification_type=notification_type,
                total=len(items),
            )
            for request in items:
                if request.priority is None and priority is not None:
                    request = replace(request, priority=priority)

                try:
                    result = await self.send_notification(request)
                except Exception as e:
                    logger.error(f"Batch item for user {request.user_id} failed: {e}")
                    result = NotificationResult(
                        success=False,
                        message="Individual notification failed",
                        error=str(e),
                    )

                batch.results.append(result)
                if not result.success:
                    summary.failed += 1
                elif result.queue_id:
                    summary.scheduled += 1
                else:
                    summary.sent += 1

            batch.total_sent += summary.sent
            batch.total_failed += summary.failed
            batch.total_scheduled += summary.scheduled
            batch.groups.append(summary)

        logger.info(
            f"Batch done: sent={batch.total_sent} failed={batch.total_failed} "
            f"scheduled={batch.total_scheduled}"
        )
        return batch

    async def process_queue_item(self, item: QueueItem) -> NotificationResult:
        """
        Deliver a claimed (processing) queue item.

        Re-renders from the current template, sends, logs the attempt and
        moves the item to sent, back to pending for a retry, or to failed.
        """
        request = NotificationRequest(
            user_id=item.user_id,
            recipient=item.recipient,
            type=item.notification_type,
            channel_type=item.channel_type,
            priority=item.priority,
            data=item.variables,
            template_override=item.content or None,
        )

        try:
            content = await self.template_service.render(
                item.template_key, item.channel_type, item.variables, item.content or None
            )
        except TemplateNotFoundError as e:
            await self._log_attempt(request, None, SendResult.permanent_failure(str(e)))
            await self.queue_service.mark_failed(item.id, str(e), retryable=False)
            return NotificationResult(success=False, message="Template not found", error=str(e))
        except Exception as e:
            logger.error(f"Rendering queue item {item.id} failed: {e}")
            await self.queue_service.mark_failed(item.id, str(e), retryable=True)
            return NotificationResult(success=False, message="Notification service error", error=str(e))

        send_result = await self.dispatcher.send(item.channel_type, request, content)
        await self._log_attempt(request, content, send_result)

        if send_result.success:
            await self.queue_service.mark_sent(item.id)
            return NotificationResult(
                success=True,
                message=f"{CHANNEL_NAMES[item.channel_type]} notification sent successfully",
                notification_id=send_result.external_id,
                queue_id=str(item.id),
            )

        await self.queue_service.mark_failed(
            item.id, send_result.error or "Unknown error", retryable=send_result.retryable
        )
        return NotificationResult(
            success=False,
            message=f"{CHANNEL_NAMES[item.channel_type]} notification failed",
            queue_id=str(item.id),
            error=send_result.error,
        )

    async def _schedule(self, request: NotificationRequest) -> NotificationResult:
        override = request.template_override or {}
        item = QueueItem(
            user_id=request.user_id,
            notification_type=request.type,
            template_key=template_key(request.type, request.channel_type),
            channel_type=request.channel_type,
            recipient=request.recipient,
            subject=override.get("subject"),
            content=dict(override),
            variables=dict(request.data),
            scheduled_at=request.scheduled_at,
            priority=request.effective_priority(),
            max_retries=self.queue_service.max_retries,
        )
        queue_id = await self.queue_service.enqueue(item)
        return NotificationResult(
            success=True,
            message="Notification scheduled successfully",
            queue_id=str(queue_id),
        )

    async def _dispatch(self, request: NotificationRequest) -> NotificationResult:
        channel_name = CHANNEL_NAMES[request.channel_type]
        key = template_key(request.type, request.channel_type)

        try:
            content = await self.template_service.render(
                key, request.channel_type, request.data, request.template_override
            )
        except TemplateNotFoundError as e:
            logger.warning(str(e))
            await self._log_attempt(request, None, SendResult.permanent_failure(str(e)))
            return NotificationResult(
                success=False,
                message=f"{channel_name} notification failed",
                error=str(e),
            )

        send_result = await self.dispatcher.send(request.channel_type, request, content)
        await self._log_attempt(request, content, send_result)

        if send_result.success:
            return NotificationResult(
                success=True,
                message=f"{channel_name} notification sent successfully",
                notification_id=send_result.external_id,
            )
        return NotificationResult(
            success=False,
            message=f"{channel_name} notification failed",
            error=send_result.error,
        )

    async def _log_attempt(
        self,
        request: NotificationRequest,
        content: Optional[RenderedContent],
        result: SendResult,
    ) -> Optional[DeliveryLogEntry]:
        """Write the delivery log entry; failures are logged, not raised"""
        entry = DeliveryLogEntry(
            user_id=request.user_id,
            notification_type=request.type,
            channel_type=request.channel_type,
            recipient=request.recipient,
            status=DeliveryStatus.SENT if result.success else DeliveryStatus.FAILED,
            subject=(content.subject or None) if content else None,
            content_preview=content.preview_source() if content else None,
            external_id=result.external_id,
            error_message=result.error,
            sent_at=self._clock(),
            metadata={
                "priority": request.effective_priority().value,
                "data": request.data,
            },
        )
        try:
            return await self.log_service.record(entry)
        except Exception as e:
            logger.warning(f"Failed to write delivery log for user {request.user_id}: {e}")
            return None

    async def close(self):
        await self.dispatcher.close()

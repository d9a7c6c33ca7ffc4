"""
Batch Grouper

Partitions a batch of requests by (channel, notification type).
"""
from typing import Dict, List, Tuple

from ..models.notification import ChannelType, NotificationRequest, NotificationType

GroupKey = Tuple[ChannelType, NotificationType]


def group(requests: List[NotificationRequest]) -> Dict[GroupKey, List[NotificationRequest]]:
    """
    Group requests by (channel_type, type).

    Groups appear in order of first occurrence and keep input order inside.
    """
    groups: Dict[GroupKey, List[NotificationRequest]] = {}
    for request in requests:
        groups.setdefault((request.channel_type, request.type), []).append(request)
    return groups

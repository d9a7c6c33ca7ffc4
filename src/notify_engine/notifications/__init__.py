"""
Notification Senders

Delivery channels: Email, SMS, Push, In-app.
"""
from .base_sender import BaseSender, SendResult
from .email_sender import EmailSender
from .in_app_sender import InAppSender
from .placeholder_senders import PushSender, SmsSender
from .transports import DeliveryReceipt, EmailTransport, ResendTransport, SmtpTransport

__all__ = [
    'BaseSender',
    'SendResult',
    'EmailSender',
    'InAppSender',
    'PushSender',
    'SmsSender',
    'DeliveryReceipt',
    'EmailTransport',
    'ResendTransport',
    'SmtpTransport',
]

"""Outbound notifications"""

from canteen_api.notifications.notifier import Notifier, ChannelNotifier
from canteen_api.notifications.email import SmtpEmailSender
from canteen_api.notifications.alerts import TwilioAlertSender

__all__ = [
    "Notifier",
    "ChannelNotifier",
    "SmtpEmailSender",
    "TwilioAlertSender",
]

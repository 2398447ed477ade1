"""
Notification Service Domain Exceptions

All exceptions raised by the notification service layer.
"""


class NotificationServiceError(Exception):
    """Base exception for notification service errors"""
    pass


class DeliveryError(NotificationServiceError):
    """Raised when the messaging channel did not accept a message (API error or timeout)"""
    pass


class RecipientUnreachableError(DeliveryError):
    """Raised when the recipient blocked the bot or the chat does not exist"""
    pass


class TemplateNotApplicableError(NotificationServiceError):
    """Raised when there is no message for a (window, trial) combination"""
    pass

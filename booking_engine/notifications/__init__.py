from booking_engine.notifications.alert_dispatcher import AlertDispatcher
from booking_engine.notifications.follow_ups import FOLLOW_UP_SEQUENCE, FollowUpScheduler
from booking_engine.notifications.gateway import LoggingNotificationGateway, NotificationGateway

__all__ = [
    "AlertDispatcher",
    "FollowUpScheduler",
    "FOLLOW_UP_SEQUENCE",
    "NotificationGateway",
    "LoggingNotificationGateway",
]

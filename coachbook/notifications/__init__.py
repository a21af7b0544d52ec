from coachbook.notifications.dispatcher import (
    BookingNotifier,
    IdentityProvider,
    InMemoryNotificationDispatcher,
    LoggingNotificationDispatcher,
    NameResolver,
    NotificationDispatcher,
    StaticIdentityProvider,
    StaticNameResolver,
)

__all__ = [
    "BookingNotifier",
    "IdentityProvider",
    "InMemoryNotificationDispatcher",
    "LoggingNotificationDispatcher",
    "NameResolver",
    "NotificationDispatcher",
    "StaticIdentityProvider",
    "StaticNameResolver",
]

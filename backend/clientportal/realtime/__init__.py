from clientportal.realtime.chime import chime_wav
from clientportal.realtime.feeds import MessageFeed, NotificationFeed, RealtimeFeed
from clientportal.realtime.hub import ChangeEvent, RealtimeHub, RowChange, RowFilter, Subscription, get_hub
from clientportal.realtime.mirror import RealtimeMirror

__all__ = [
    "ChangeEvent",
    "MessageFeed",
    "NotificationFeed",
    "RealtimeFeed",
    "RealtimeHub",
    "RealtimeMirror",
    "RowChange",
    "RowFilter",
    "Subscription",
    "chime_wav",
    "get_hub",
]

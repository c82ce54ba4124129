from packages.stores.checkin import CheckinStore
from packages.stores.content import ContentStore
from packages.stores.events import EventStore
from packages.stores.profile import ProfileStore
from packages.stores.progress import ProgressStore
from packages.stores.subscription import SubscriptionRecord, SubscriptionStore

__all__ = [
    "CheckinStore",
    "ContentStore",
    "EventStore",
    "ProfileStore",
    "ProgressStore",
    "SubscriptionRecord",
    "SubscriptionStore",
]

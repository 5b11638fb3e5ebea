"""tornwatch - Torn API poller with state-change notifications."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tornwatch")
except PackageNotFoundError:
    __version__ = "0+local"
from tornwatch.client import TornClient
from tornwatch.commands import OperatorCommands
from tornwatch.config import Intervals, TornWatchConfig
from tornwatch.exceptions import (
    TornApiError,
    TornAuthenticationError,
    TornConfigError,
    TornDataError,
    TornError,
    TornInputError,
    TornNotificationError,
    TornPersistenceError,
    TornRateLimitError,
    TornTransportError,
)
from tornwatch.models import (
    BarKind,
    CoarseState,
    CooldownKind,
    IconKind,
    Profile,
    parse_states,
)
from tornwatch.notify import Notification, NotificationDispatcher, NotificationKind
from tornwatch.pollers import PollContext, PollerManager
from tornwatch.session_key import session_key
from tornwatch.state import StateStore, TrackerState
from tornwatch.timeutil import format_duration, parse_duration, parse_duration_list
from tornwatch.travel import TravelInfo, TravelType, estimate_travel

__all__ = [
    "__version__",
    "BarKind",
    "CoarseState",
    "CooldownKind",
    "IconKind",
    "Intervals",
    "Notification",
    "NotificationDispatcher",
    "NotificationKind",
    "OperatorCommands",
    "PollContext",
    "PollerManager",
    "Profile",
    "StateStore",
    "TornApiError",
    "TornAuthenticationError",
    "TornClient",
    "TornConfigError",
    "TornDataError",
    "TornError",
    "TornInputError",
    "TornNotificationError",
    "TornPersistenceError",
    "TornRateLimitError",
    "TornTransportError",
    "TornWatchConfig",
    "TrackerState",
    "TravelInfo",
    "TravelType",
    "estimate_travel",
    "format_duration",
    "parse_duration",
    "parse_duration_list",
    "parse_states",
    "session_key",
]

# Process-wide services shared by the vision and focal packages
from .logger import logger, Logger, LogLevel, log_aware, logged
from .event_broker import EventBroker, EventPriority, event_aware

__all__ = [
    'logger',
    'Logger',
    'LogLevel',
    'log_aware',
    'logged',
    'EventBroker',
    'EventPriority',
    'event_aware',
]

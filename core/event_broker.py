"""
EventBroker - publish/subscribe with a class decorator for automatic injection
Eliminates the need to manually pass event_broker instances around
"""

import threading
import uuid
from enum import Enum, auto
from functools import wraps
from typing import Callable, Dict, List, Any, Optional, Type

from .logger import logger


class EventPriority(Enum):
    """Event priority levels"""
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()


class EventBroker:
    """
    General-purpose event broker for managing publish-subscribe patterns
    Subscribers run in priority order; a failing subscriber never stops the others
    """

    # Global registry for event brokers
    _instances: Dict[str, 'EventBroker'] = {}
    _registry_lock = threading.Lock()

    def __init__(self, name: str = "default", enable_logging: bool = False):
        self.name = name
        self._subscribers: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._enable_logging = enable_logging

    @classmethod
    def get_broker(cls, name: str = "default") -> 'EventBroker':
        """Get or create a named event broker"""
        with cls._registry_lock:
            if name not in cls._instances:
                cls._instances[name] = EventBroker(name)
            return cls._instances[name]

    @classmethod
    def get_default(cls) -> 'EventBroker':
        """Get the default event broker"""
        return cls.get_broker("default")

    def set_logging(self, enabled: bool):
        self._enable_logging = enabled

    def _log(self, message: str, level: str = "DEBUG"):
        if self._enable_logging:
            logger.log(f"EventBroker[{self.name}]: {message}", level)

    def subscribe(self, event_type: str, callback: Callable,
                  priority: EventPriority = EventPriority.NORMAL,
                  error_handler: Optional[Callable[[Exception], None]] = None) -> str:
        """Subscribe to an event"""
        subscription_id = str(uuid.uuid4())

        subscriber = {
            'id': subscription_id,
            'callback': callback,
            'priority': priority,
            'error_handler': error_handler
        }

        with self._lock:
            subscribers = self._subscribers.setdefault(event_type, [])
            subscribers.append(subscriber)
            subscribers.sort(key=lambda x: x['priority'].value, reverse=True)

        self._log(f"Subscribed to '{event_type}' with priority {priority.name}")
        return subscription_id

    def unsubscribe(self, event_type: str, subscription_id: str = None, callback: Callable = None) -> bool:
        """Unsubscribe from an event by subscription id or callback"""
        with self._lock:
            if event_type not in self._subscribers:
                return False

            original_count = len(self._subscribers[event_type])

            if subscription_id:
                self._subscribers[event_type] = [
                    s for s in self._subscribers[event_type] if s['id'] != subscription_id
                ]
            elif callback:
                self._subscribers[event_type] = [
                    s for s in self._subscribers[event_type] if s['callback'] != callback
                ]

            success = len(self._subscribers[event_type]) < original_count

        if success:
            self._log(f"Unsubscribed from '{event_type}'")
        return success

    def publish(self, event_type: str, *args, **kwargs) -> int:
        """Publish an event to all subscribers, returning how many handled it"""
        with self._lock:
            subscribers = list(self._subscribers.get(event_type, []))

        if not subscribers:
            self._log(f"No subscribers for event '{event_type}'")
            return 0

        successful_calls = 0
        for subscriber in subscribers:
            try:
                subscriber['callback'](*args, **kwargs)
                successful_calls += 1
            except Exception as e:
                self._log(f"Error in subscriber for '{event_type}': {e}", "ERROR")

                if subscriber['error_handler']:
                    try:
                        subscriber['error_handler'](e)
                    except Exception as handler_error:
                        self._log(f"Error in error handler: {handler_error}", "ERROR")

        return successful_calls

    def has_subscribers(self, event_type: str) -> bool:
        """Check if event type has any subscribers"""
        with self._lock:
            return bool(self._subscribers.get(event_type))

    def clear(self):
        """Drop every subscription on this broker"""
        with self._lock:
            self._subscribers.clear()


def event_aware(broker_name: str = "default"):
    """
    Class decorator that automatically injects EventBroker functionality

    Injected methods: emit, listen, stop_listening, stop_all_listening
    """

    def decorator(cls: Type) -> Type:
        original_init = cls.__init__

        @wraps(original_init)
        def new_init(self, *args, **kwargs):
            self._event_broker = EventBroker.get_broker(broker_name)
            self._subscriptions: List[tuple] = []
            original_init(self, *args, **kwargs)

        cls.__init__ = new_init

        def emit(self, event_type: str, *args, **kwargs) -> int:
            """Emit an event"""
            return self._event_broker.publish(event_type, *args, **kwargs)

        def listen(self, event_type: str, callback: Callable,
                   priority: EventPriority = EventPriority.NORMAL,
                   error_handler: Optional[Callable[[Exception], None]] = None) -> str:
            """Subscribe to an event and track the subscription"""
            subscription_id = self._event_broker.subscribe(
                event_type, callback, priority, error_handler
            )
            self._subscriptions.append((event_type, subscription_id))
            return subscription_id

        def stop_listening(self, event_type: str, subscription_id: str) -> bool:
            """Unsubscribe one tracked subscription"""
            success = self._event_broker.unsubscribe(event_type, subscription_id)
            self._subscriptions = [
                (et, sid) for et, sid in self._subscriptions
                if not (et == event_type and sid == subscription_id)
            ]
            return success

        def stop_all_listening(self) -> None:
            """Unsubscribe everything this instance subscribed to"""
            for event_type, subscription_id in self._subscriptions:
                self._event_broker.unsubscribe(event_type, subscription_id)
            self._subscriptions = []

        cls.emit = emit
        cls.listen = listen
        cls.stop_listening = stop_listening
        cls.stop_all_listening = stop_all_listening

        return cls

    return decorator

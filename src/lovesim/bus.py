""" Typed publish/subscribe channels between the narrative core and its
collaborators. """

import logging
import collections
from typing import Any, Callable, Optional, Type, TypeVar

from lovesim import util
from lovesim.messages import Message

M = TypeVar("M", bound=Message)
Handler = Callable[[Any], None]

class MessageBus:
    """ One channel per message class.

    Delivery is synchronous on the caller's thread. Handlers run in reverse
    registration order over a snapshot of the channel, so handlers may
    subscribe, unsubscribe or publish while a message is being delivered.
    A handler that raises is logged and does not stop delivery to the rest.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(util.fullname(self))
        self._channels:collections.defaultdict[type, list[Handler]] = collections.defaultdict(list)

    def subscribe(self, message_type:Type[M], handler:Callable[[M], None]) -> None:
        if handler is None:
            self.logger.error(f'tried to subscribe a null handler to {message_type.__name__}')
            return

        handlers = self._channels[message_type]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, message_type:Type[M], handler:Callable[[M], None]) -> None:
        # allow double unsubscribe, teardown paths are not always symmetric
        if handler is None or message_type not in self._channels:
            return
        handlers = self._channels[message_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, message:Message) -> None:
        message_type = type(message)
        if message_type not in self._channels:
            return

        for handler in list(reversed(self._channels[message_type])):
            try:
                handler(message)
            except Exception:
                self.logger.exception(f'handler {handler} failed on {message_type.__name__}')

    def handler_count(self, message_type:type) -> int:
        if message_type not in self._channels:
            return 0
        return len(self._channels[message_type])

    def clear(self, message_type:Optional[type]=None) -> None:
        """ Drops subscriptions for one message type, or for all of them. """
        if message_type is None:
            self._channels.clear()
        else:
            self._channels.pop(message_type, None)

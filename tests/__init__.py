from typing import Any, Type, TypeVar

from lovesim import bus, messages

M = TypeVar("M", bound=messages.Message)

ALL_MESSAGE_TYPES = [
    v for v in vars(messages).values()
    if isinstance(v, type) and issubclass(v, messages.Message) and v is not messages.Message
]

class MessageRecorder:
    """ Records every message published on a bus, in publish order.

    Subscribe this after everything else so it sees each message before any
    handler reacts to it. """

    def __init__(self, message_bus:bus.MessageBus) -> None:
        self.bus = message_bus
        self.messages:list[messages.Message] = []
        for message_type in ALL_MESSAGE_TYPES:
            self.bus.subscribe(message_type, self.record)

    def record(self, message:messages.Message) -> None:
        self.messages.append(message)

    def of_type(self, message_type:Type[M]) -> list[M]:
        return [x for x in self.messages if isinstance(x, message_type)]

    def types(self) -> list[type]:
        return [type(x) for x in self.messages]

    def clear(self) -> None:
        self.messages.clear()

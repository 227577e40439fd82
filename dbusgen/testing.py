"""In-memory stand-in for a blocking jeepney connection.

Generated bindings only need `send_and_get_reply(message, timeout=...)` and
`close()` from a connection, so they can be exercised without a bus:

    bus = FakeConnection()
    bus.add_method("org.example.Foo", "Ping", lambda call: None)
    bus.properties[("org.example.Foo", "Level")] = Variant("i", 3)
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from jeepney.low_level import HeaderFields
from jeepney.wrappers import new_error, new_method_return

from .runtime import PROPERTIES_INTERFACE, Variant


@dataclass
class Call:
    """A method call as received by the fake connection"""
    destination: str
    path: str
    interface: str
    member: str
    signature: str
    body: tuple
    timeout: Optional[float]


@dataclass
class Reply:
    """Reply produced by a handler"""
    signature: str = ""
    body: tuple = ()


class RemoteError(Exception):
    """Raised by a handler to send an error reply"""

    def __init__(self, name: str, text: str = ""):
        super().__init__(text)
        self.name = name
        self.text = text


Handler = Callable[[Call], Optional[Reply]]


class FakeConnection:
    """Records calls and answers them from registered handlers"""

    def __init__(self):
        self.calls: list[Call] = []
        self.handlers: dict[tuple[str, str], Handler] = {}
        self.properties: dict[tuple[str, str], Variant] = {}
        self.closed = False

    def add_method(self, interface: str, member: str, handler: Handler) -> None:
        self.handlers[(interface, member)] = handler

    def send_and_get_reply(self, message, timeout: Optional[float] = None):
        if self.closed:
            raise ConnectionError("connection is closed")
        fields = message.header.fields
        call = Call(
            destination=fields[HeaderFields.destination],
            path=fields[HeaderFields.path],
            interface=fields.get(HeaderFields.interface, ""),
            member=fields[HeaderFields.member],
            signature=fields.get(HeaderFields.signature, ""),
            body=tuple(message.body),
            timeout=timeout,
        )
        self.calls.append(call)

        try:
            reply = self._dispatch(call)
        except RemoteError as error:
            return new_error(message, error.name, "s", (error.text,))
        if reply is None:
            return new_method_return(message)
        return new_method_return(message, reply.signature or None, reply.body)

    def _dispatch(self, call: Call) -> Optional[Reply]:
        if call.interface == PROPERTIES_INTERFACE:
            return self._properties(call)
        handler = self.handlers.get((call.interface, call.member))
        if handler is None:
            raise RemoteError("org.freedesktop.DBus.Error.UnknownMethod", f"no method {call.member}")
        return handler(call)

    def _properties(self, call: Call) -> Optional[Reply]:
        if call.member == "Get":
            interface, name = call.body
            if (interface, name) not in self.properties:
                raise RemoteError("org.freedesktop.DBus.Error.UnknownProperty", name)
            return Reply("v", (tuple(self.properties[(interface, name)]),))
        if call.member == "GetAll":
            (interface,) = call.body
            values = {
                name: tuple(value)
                for (iface, name), value in self.properties.items()
                if iface == interface
            }
            return Reply("a{sv}", (values,))
        if call.member == "Set":
            interface, name, value = call.body
            self.properties[(interface, name)] = Variant(*value)
            return None
        raise RemoteError("org.freedesktop.DBus.Error.UnknownMethod", call.member)

    def close(self) -> None:
        self.closed = True


def reply_with(signature: str, *body: Any) -> Handler:
    """Handler that always answers with the given body"""
    return lambda call: Reply(signature, body)

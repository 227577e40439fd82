"""Runtime support for generated D-Bus client bindings.

Generated classes derive from `DbusObject`. It holds the connection, the
destination, the object path and the call timeout, and implements the
blocking call primitive on top of jeepney.

Host types take part in wire encoding through three optional hooks:

    __dbus_signature__   class attribute, the D-Bus signature of the type
    __dbus_value__()     instance method returning the value to send
    __dbus_from__(raw)   classmethod turning a received value into an instance
"""

import logging
import types
from collections import namedtuple
from dataclasses import dataclass
from typing import Any, Optional, Union, get_args, get_origin

from jeepney.io.blocking import open_dbus_connection
from jeepney.wrappers import DBusAddress, new_method_call, unwrap_msg

logger = logging.getLogger(__name__)

PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

_BUILTIN_SIGNATURES = {
    str: "s",
    bool: "b",
    int: "i",
    float: "d",
    bytes: "ay",
}

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))


class Variant(namedtuple("Variant", ["signature", "value"])):
    """A dynamically-typed D-Bus value.

    It is a plain (signature, value) pair, which is what jeepney sends and
    receives for `v`.
    """
    __slots__ = ()
    __dbus_signature__ = "v"

    @classmethod
    def __dbus_from__(cls, raw) -> "Variant":
        return cls(*raw)


# ══════════════════════════════════════════════════════════════
# Connection ownership
# ══════════════════════════════════════════════════════════════

@dataclass
class Owned:
    """A connection owned by the object holding it; closed with it"""
    connection: Any
    closed: bool = False

    def close(self) -> None:
        if not self.closed:
            self.connection.close()
            self.closed = True


@dataclass
class Borrowed:
    """A connection lent by `owner`; never closed through this holder.

    Keeping `owner` referenced keeps the lending object (and so an owned
    connection) alive for as long as the borrower is.
    """
    connection: Any
    owner: Any = None

    def close(self) -> None:
        pass


MaybeOwned = Union[Owned, Borrowed]


def as_maybe_owned(connection) -> MaybeOwned:
    """Wrap a bare connection as owned, keep an explicit holder as is"""
    if isinstance(connection, (Owned, Borrowed)):
        return connection
    return Owned(connection)


# ══════════════════════════════════════════════════════════════
# Capability markers
# ══════════════════════════════════════════════════════════════

class CommonDestination:
    """The object lives at the well-known bus name `DESTINATION`"""
    DESTINATION: str


class CommonPath:
    """The object lives at the well-known path `PATH`"""
    PATH: str


class CommonlySession:
    """The object is usually found on the session bus"""


class CommonlySystem:
    """The object is usually found on the system bus"""


# ══════════════════════════════════════════════════════════════
# Wire helpers
# ══════════════════════════════════════════════════════════════

def signature_of(tp) -> str:
    """D-Bus signature of a host type"""
    if tp in _BUILTIN_SIGNATURES:
        return _BUILTIN_SIGNATURES[tp]
    try:
        return tp.__dbus_signature__
    except AttributeError:
        raise TypeError(f"{tp!r} has no D-Bus signature (missing `__dbus_signature__`)") from None


def signature_for_annotation(annotation) -> str:
    """D-Bus signature of a Python type annotation"""
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin in _UNION_TYPES:
        options = [a for a in args if a is not type(None)]
        if len(options) != 1:
            raise TypeError(f"cannot derive a D-Bus signature for {annotation!r}")
        return signature_for_annotation(options[0])
    if origin is list:
        return "a" + signature_for_annotation(args[0])
    if origin is tuple:
        return "(" + "".join(signature_for_annotation(a) for a in args) + ")"
    if origin is dict:
        return "a{" + signature_for_annotation(args[0]) + signature_for_annotation(args[1]) + "}"
    return signature_of(annotation)


def to_wire(value):
    """Convert a host value into what jeepney serialises"""
    encode = getattr(type(value), "__dbus_value__", None)
    if encode is not None:
        return encode(value)
    if isinstance(value, Variant):
        return Variant(value.signature, to_wire(value.value))
    if isinstance(value, list):
        return [to_wire(item) for item in value]
    if isinstance(value, tuple):
        return tuple(to_wire(item) for item in value)
    if isinstance(value, dict):
        return {key: to_wire(item) for key, item in value.items()}
    return value


def from_wire(tp, raw):
    """Convert a received value into an instance of host type `tp`"""
    decode = getattr(tp, "__dbus_from__", None)
    if decode is None:
        return raw
    return decode(raw)


# ══════════════════════════════════════════════════════════════
# Remote objects
# ══════════════════════════════════════════════════════════════

class DbusObject:
    """Base class of every generated D-Bus client class.

    On the wire an object is its path, so instances can be passed wherever
    an object path is expected.
    """

    __dbus_signature__ = "o"

    def __init__(self, connection, destination: str, path: str, timeout: Optional[float]):
        self._connection = as_maybe_owned(connection)
        self._destination = destination
        self._path = path
        self._timeout = timeout

    @classmethod
    def _require(cls, *markers: type) -> None:
        missing = [m.__name__ for m in markers if not issubclass(cls, m)]
        if missing:
            raise TypeError(f"{cls.__name__} does not declare {', '.join(missing)}")

    @classmethod
    def connect(cls, connection, timeout: Optional[float]):
        """Object at its declared destination and path"""
        cls._require(CommonDestination, CommonPath)
        return cls(connection, cls.DESTINATION, cls.PATH, timeout)

    @classmethod
    def with_destination(cls, connection, destination: str, timeout: Optional[float]):
        """Object at its declared path on another destination"""
        cls._require(CommonPath)
        return cls(connection, destination, cls.PATH, timeout)

    @classmethod
    def with_path(cls, connection, path: str, timeout: Optional[float]):
        """Object at its declared destination under another path"""
        cls._require(CommonDestination)
        return cls(connection, cls.DESTINATION, path, timeout)

    @classmethod
    def session(cls, timeout: Optional[float]):
        """Open a session bus connection owned by the returned object"""
        cls._require(CommonDestination, CommonPath, CommonlySession)
        return cls.connect(open_dbus_connection(bus="SESSION"), timeout)

    @classmethod
    def system(cls, timeout: Optional[float]):
        """Open a system bus connection owned by the returned object"""
        cls._require(CommonDestination, CommonPath, CommonlySystem)
        return cls.connect(open_dbus_connection(bus="SYSTEM"), timeout)

    @property
    def connection(self):
        return self._connection.connection

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def path(self) -> str:
        return self._path

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def sub_object(self, cls, path: str):
        """Another object on the same destination, borrowing this connection"""
        return cls(Borrowed(self.connection, owner=self), self._destination, path, self._timeout)

    def method_call(self, interface: str, member: str, signature: str, args: tuple) -> tuple:
        """Call a remote method and block until its reply.

        Error replies raise jeepney's DBusErrorResponse; transport failures
        (including the timeout) propagate as they are.
        """
        address = DBusAddress(self._path, bus_name=self._destination, interface=interface)
        message = new_method_call(address, member, signature or None, tuple(args))
        logger.debug("Calling %s.%s on %s at %s", interface, member, self._destination, self._path)
        reply = self.connection.send_and_get_reply(message, timeout=self._timeout)
        return tuple(unwrap_msg(reply))

    # org.freedesktop.DBus.Properties

    def get(self, interface: str, name: str):
        reply = self.method_call(PROPERTIES_INTERFACE, "Get", "ss", (interface, name))
        _, value = reply[0]
        return value

    def get_all(self, interface: str) -> dict[str, Variant]:
        reply = self.method_call(PROPERTIES_INTERFACE, "GetAll", "s", (interface,))
        return {name: Variant(*value) for name, value in reply[0].items()}

    def set(self, interface: str, name: str, signature: str, value) -> None:
        self.method_call(PROPERTIES_INTERFACE, "Set", "ssv", (interface, name, Variant(signature, value)))

    def __dbus_value__(self) -> str:
        return self._path

    def close(self) -> None:
        """Close the connection if this object owns it"""
        self._connection.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(destination={self._destination!r}, "
            f"path={self._path!r}, timeout={self._timeout!r})"
        )

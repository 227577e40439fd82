"""Host types used by the wpa_supplicant sample declarations"""

from dataclasses import dataclass
from enum import auto
from typing import Optional

from dbusgen.derive import NamedEnum, dbus_dict, dbus_enum, dbus_field


@dbus_dict
@dataclass
class CreateInterface:
    """A dictionary with arguments used to add the interface to wpa_supplicant"""
    Ifname: str
    BridgeIfName: Optional[str] = None
    Driver: Optional[str] = None
    ConfigFile: Optional[str] = None


@dbus_enum
class DebugLevel(NamedEnum):
    msgdump = auto()
    debug = auto()
    info = auto()
    warning = auto()
    error = auto()


@dbus_enum
class InterfaceScanType(NamedEnum):
    active = auto()
    passive = auto()


@dbus_dict
@dataclass
class InterfaceScan:
    Type: InterfaceScanType
    SSIDs: Optional[list[bytes]] = None
    IEs: Optional[list[bytes]] = None
    Channels: Optional[list[tuple[int, int]]] = dbus_field("a(uu)")
    AllowRoam: Optional[bool] = None

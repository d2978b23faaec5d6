"""Recognise iLO DHCP traffic and pull a device name and MAC out of it."""
from __future__ import annotations

import dataclasses
import typing as t

from .config import NAME_PREFIX, VENDOR_CLASS
from .dhcp import DHCPMessage


@dataclasses.dataclass(frozen=True)
class DeviceSighting:
    name: str
    mac: str


def format_mac(hwaddr: bytes) -> str:
    """Render a hardware address of any length as lower-case colon-separated hex."""
    return hwaddr.hex(":")


def device_name(hostname: bytes, prefix: str = NAME_PREFIX) -> str:
    # some clients NUL-terminate string options
    name = hostname.rstrip(b"\x00").decode("utf-8", errors="replace")
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def extract(msg: DHCPMessage, vendor_class: bytes = VENDOR_CLASS, prefix: str = NAME_PREFIX) -> t.Optional[DeviceSighting]:
    """Return a sighting for an iLO DHCP message, None for anything else."""
    if msg.vendor_class != vendor_class:
        return None
    hostname = msg.hostname
    if hostname is None:
        return None
    return DeviceSighting(name=device_name(hostname, prefix), mac=format_mac(msg.chaddr[:msg.hlen]))

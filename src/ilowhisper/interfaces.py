"""Pick a default capture interface: the first Ethernet, non-loopback one."""
from __future__ import annotations

import dataclasses
import logging
import typing as t

from .errors import NotFoundError

log = logging.getLogger("ilowhisper.interfaces")

# ARPHRD_* hardware families as returned by SIOCGIFHWADDR
ARPHRD_ETHER = 1
ARPHRD_LOOPBACK = 772


@dataclasses.dataclass
class InterfaceInfo:
    name: str
    is_ethernet: bool
    is_loopback: bool


def _describe(name: str) -> InterfaceInfo:
    from scapy.all import conf, get_if_raw_hwaddr

    try:
        family, _mac = get_if_raw_hwaddr(name)
    except OSError as e:
        log.debug("cannot read hardware address of %s: %s", name, e)
        family = None
    return InterfaceInfo(
        name=name,
        is_ethernet=family == ARPHRD_ETHER,
        is_loopback=family == ARPHRD_LOOPBACK or name == conf.loopback_name,
    )


def list_interfaces() -> list[InterfaceInfo]:
    from scapy.all import get_if_list

    return [_describe(name) for name in get_if_list()]


def select_interface(candidates: t.Optional[t.Iterable[InterfaceInfo]] = None) -> str:
    """Return the first Ethernet, non-loopback interface name.

    `candidates` defaults to every interface on the host, in the order the
    OS lists them.
    """
    if candidates is None:
        candidates = list_interfaces()
    for info in candidates:
        if info.is_ethernet and not info.is_loopback:
            log.info("selected capture interface %s", info.name)
            return info.name
    raise NotFoundError("no Ethernet, non-loopback network interface found")

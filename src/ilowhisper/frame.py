"""Frame decoding: peel Ethernet -> IP -> UDP off a captured frame.

`decode()` never raises. It returns a `FrameResult` tagged `ok`,
`irrelevant` (not UDP, or not addressed to the DHCP server port) or
`error` (malformed at some layer), so the receive loop can keep going.
"""
from __future__ import annotations

import dataclasses
import socket
import typing as t

import dpkt

from .config import DHCP_SERVER_PORT
from .errors import DecodeError, LinkDecodeError, NetworkDecodeError, TransportDecodeError

ETH_HDR_LEN = 14

OK = "ok"
IRRELEVANT = "irrelevant"
ERROR = "error"


@dataclasses.dataclass
class RawFrame:
    ts: float
    data: bytes
    length: t.Optional[int] = None

    def __post_init__(self):
        if self.length is None:
            self.length = len(self.data)


@dataclasses.dataclass
class UDPDatagram:
    src_mac: t.Optional[bytes]
    src_ip: str
    dst_ip: str
    sport: int
    dport: int
    length: int
    payload: bytes


@dataclasses.dataclass
class FrameResult:
    status: str
    datagram: t.Optional[UDPDatagram] = None
    error: t.Optional[DecodeError] = None

    @classmethod
    def irrelevant(cls) -> "FrameResult":
        return cls(IRRELEVANT)

    @classmethod
    def failed(cls, error: DecodeError) -> "FrameResult":
        return cls(ERROR, error=error)


def _ip_to_str(ip) -> t.Tuple[str, str]:
    if isinstance(ip, dpkt.ip.IP):
        return socket.inet_ntoa(ip.src), socket.inet_ntoa(ip.dst)
    return socket.inet_ntop(socket.AF_INET6, ip.src), socket.inet_ntop(socket.AF_INET6, ip.dst)


def decode(frame: RawFrame, port: int = DHCP_SERVER_PORT) -> FrameResult:
    """Decode `frame` down to the UDP payload if it is addressed to `port`."""
    raw = frame.data
    if len(raw) < ETH_HDR_LEN:
        return FrameResult.failed(LinkDecodeError(f"frame too short: {len(raw)} bytes"))
    try:
        eth = dpkt.ethernet.Ethernet(raw)
    except (dpkt.UnpackError, IndexError) as e:
        return FrameResult.failed(LinkDecodeError(f"bad ethernet header: {e}"))

    # 802.1Q frames keep the outer ethertype; dpkt still decodes the inner IP
    ip = eth.data
    if not isinstance(ip, (dpkt.ip.IP, dpkt.ip6.IP6)):
        if eth.type in (dpkt.ethernet.ETH_TYPE_IP, dpkt.ethernet.ETH_TYPE_IP6):
            return FrameResult.failed(NetworkDecodeError(f"malformed IP header (ethertype 0x{eth.type:04x})"))
        # dpkt leaves the payload as bytes when it does not know the ethertype
        if isinstance(ip, dpkt.Packet):
            return FrameResult.irrelevant()
        return FrameResult.failed(LinkDecodeError(f"unknown ethertype 0x{eth.type:04x}"))

    # dpkt's IPv4 uses `p`; IPv6 sets `p` to the last next-header it walked
    proto = getattr(ip, "p", getattr(ip, "nxt", None))
    if proto != dpkt.ip.IP_PROTO_UDP:
        return FrameResult.irrelevant()

    udp = ip.data
    if not isinstance(udp, dpkt.udp.UDP):
        return FrameResult.failed(TransportDecodeError("malformed UDP header"))
    if udp.dport != port:
        return FrameResult.irrelevant()

    try:
        src_ip, dst_ip = _ip_to_str(ip)
    except (OSError, ValueError) as e:
        return FrameResult.failed(NetworkDecodeError(f"bad IP address: {e}"))

    return FrameResult(
        OK,
        datagram=UDPDatagram(
            src_mac=getattr(eth, "src", None),
            src_ip=src_ip,
            dst_ip=dst_ip,
            sport=udp.sport,
            dport=udp.dport,
            length=udp.ulen,
            payload=bytes(udp.data),
        ),
    )

"""DHCP message parsing.

Only what discovery needs is decoded: the fixed BOOTP header and the option
list. Option values are kept as raw bytes keyed by option code.

Option parsing is lenient: a duplicate code overwrites the earlier value,
and a malformed option ends option parsing without failing the message, so
host-name and vendor class read before some broken trailing padding still
count.
"""
from __future__ import annotations

import dataclasses
import struct
import typing as t

import dpkt

from .errors import ParseError

# op htype hlen hops xid secs flags ciaddr yiaddr siaddr giaddr chaddr sname file
_BOOTP_HDR = struct.Struct("!BBBBIHH4s4s4s4s16s64s128s")
_MAGIC = struct.Struct("!I")
MIN_LEN = _BOOTP_HDR.size + _MAGIC.size
CHADDR_LEN = 16

OPT_PAD = 0
OPT_END = 255
OPT_HOSTNAME = dpkt.dhcp.DHCP_OPT_HOSTNAME
OPT_VENDOR_CLASS = dpkt.dhcp.DHCP_OPT_VENDOR_ID
OPT_MSGTYPE = dpkt.dhcp.DHCP_OPT_MSGTYPE


@dataclasses.dataclass
class DHCPMessage:
    op: int
    htype: int
    hlen: int
    xid: int
    chaddr: bytes
    options: dict[int, bytes] = dataclasses.field(default_factory=dict)

    @property
    def vendor_class(self) -> t.Optional[bytes]:
        return self.options.get(OPT_VENDOR_CLASS)

    @property
    def hostname(self) -> t.Optional[bytes]:
        return self.options.get(OPT_HOSTNAME)

    @property
    def msgtype(self) -> t.Optional[int]:
        v = self.options.get(OPT_MSGTYPE)
        return v[0] if v else None


def parse_options(buf: bytes) -> dict[int, bytes]:
    opts: dict[int, bytes] = {}
    i = 0
    while i < len(buf):
        code = buf[i]
        if code == OPT_PAD:
            i += 1
            continue
        if code == OPT_END:
            break
        if i + 1 >= len(buf):
            break
        length = buf[i + 1]
        end = i + 2 + length
        if end > len(buf):
            break
        opts[code] = bytes(buf[i + 2:end])
        i = end
    return opts


def parse(payload: bytes) -> DHCPMessage:
    """Parse a UDP payload into a DHCPMessage, raising ParseError if it is not one."""
    if len(payload) < MIN_LEN:
        raise ParseError(f"message too short: {len(payload)} bytes, need {MIN_LEN}")

    op, htype, hlen, _hops, xid, _secs, _flags, _ci, _yi, _si, _gi, chaddr, _sname, _file = _BOOTP_HDR.unpack_from(payload)
    (magic,) = _MAGIC.unpack_from(payload, _BOOTP_HDR.size)
    if magic != dpkt.dhcp.DHCP_MAGIC:
        raise ParseError(f"bad magic cookie 0x{magic:08x}")
    if hlen > CHADDR_LEN:
        raise ParseError(f"hardware address length {hlen} exceeds chaddr")

    return DHCPMessage(
        op=op,
        htype=htype,
        hlen=hlen,
        xid=xid,
        chaddr=chaddr[:hlen],
        options=parse_options(payload[MIN_LEN:]),
    )

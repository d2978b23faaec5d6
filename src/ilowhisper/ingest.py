"""PCAP and PCAPNG streaming readers.

Yields (timestamp, raw_bytes) for every packet in a capture file without
loading the file into memory. The format is picked from the file's magic
number rather than its extension: dpkt reads classic pcap, python-pcapng
reads pcapng.
"""
from __future__ import annotations

import typing as t

import dpkt
from pcapng import FileScanner
from pcapng.exceptions import PcapngException

PCAPNG_MAGIC = b"\x0a\x0d\x0d\x0a"


def _iter_pcap(fh):
    for ts, buf in dpkt.pcap.Reader(fh):
        yield float(ts), bytes(buf)


def _iter_pcapng(fh):
    for block in FileScanner(fh):
        # section headers, interface descriptions and statistics carry no packet
        if not hasattr(block, "packet_data"):
            continue
        ts = getattr(block, "timestamp", None) or 0.0
        yield float(ts), bytes(block.packet_data)


def sniff_format(path: str) -> str:
    with open(path, "rb") as fh:
        head = fh.read(4)
    return "pcapng" if head == PCAPNG_MAGIC else "pcap"


def iter_packets(path: str, fmt: t.Optional[str] = None) -> t.Iterator[t.Tuple[float, bytes]]:
    """Yield (ts, raw_bytes) for packets in a pcap or pcapng file.

    Raises ValueError, dpkt.UnpackError or PcapngException for unreadable
    contents, OSError when the file itself cannot be read.
    """
    fmt = fmt or sniff_format(path)
    with open(path, "rb") as fh:
        if fmt == "pcapng":
            yield from _iter_pcapng(fh)
        else:
            yield from _iter_pcap(fh)

"""Packet sources feeding the discovery pipeline.

Each source is opened once, then iterated: live sources never finish on
their own, a replay source ends with its file. Sources that see whole
link-layer frames (`CaptureSource`, `ReplaySource`) yield `RawFrame`s and set
`yields_frames`; `SocketSource` lets the host stack strip Ethernet/IP/UDP
and yields bare UDP payloads.

Lifecycle: idle -> open -> listening -> closed, or faulted when opening
fails. Only opening can raise; errors while receiving are logged and the
loop carries on.

Design notes:
- Capture filtering is only an optimisation. If the `udp` filter cannot be
  installed the capture is reopened without one and every frame is decoded.
- The socket source binds UDP 67 without SO_REUSEADDR, so it cannot run
  next to a DHCP server on the same host. Use the capture source there.
"""
from __future__ import annotations

import logging
import os
import socket
import time
import typing as t

import dpkt

from .config import CAPTURE_FILTER, DHCP_SERVER_PORT
from .errors import BindError, CaptureOpenError, FilterInstallError, WhisperError
from .frame import RawFrame
from .ingest import PcapngException, iter_packets, sniff_format
from .interfaces import select_interface

log = logging.getLogger("ilowhisper.sources")

IDLE = "idle"
OPEN = "open"
LISTENING = "listening"
CLOSED = "closed"
FAULTED = "faulted"

RECV_BUFSIZE = 65535


class PacketSource:
    yields_frames = True

    def __init__(self):
        self.state = IDLE

    def open(self):
        raise NotImplementedError

    def close(self):
        if self.state != FAULTED:
            self.state = CLOSED

    def _start_listening(self):
        if self.state == IDLE:
            self.open()
        if self.state not in (OPEN, LISTENING):
            raise RuntimeError(f"cannot listen on a {self.state} source")
        self.state = LISTENING

    def __enter__(self):
        if self.state == IDLE:
            self.open()
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _scapy_listen(interface: str, bpf_filter: t.Optional[str]):
    """Open a scapy layer-2 listening socket; the handle offers recv_raw() and close()."""
    from scapy.all import conf
    from scapy.error import Scapy_Exception

    kwargs = {"iface": interface}
    if bpf_filter:
        kwargs["filter"] = bpf_filter
    try:
        return conf.L2listen(**kwargs)
    except Scapy_Exception as e:
        if bpf_filter:
            raise FilterInstallError(str(e)) from e
        raise CaptureOpenError(f"cannot open capture on {interface}: {e}") from e
    except ValueError as e:
        # unknown interface name
        raise CaptureOpenError(f"cannot open capture on {interface}: {e}") from e


class CaptureSource(PacketSource):
    """Live capture on one interface, auto-selected when not given."""

    def __init__(self, interface: t.Optional[str] = None, capture_filter: t.Optional[str] = CAPTURE_FILTER, opener: t.Optional[t.Callable] = None):
        super().__init__()
        self.interface = interface
        self.capture_filter = capture_filter
        self.filtered = False
        self._opener = opener or _scapy_listen
        self._handle = None

    def _open_handle(self):
        if self.capture_filter:
            try:
                handle = self._opener(self.interface, self.capture_filter)
                self.filtered = True
                return handle
            except FilterInstallError as e:
                log.warning("could not install capture filter %r on %s (%s); capturing unfiltered", self.capture_filter, self.interface, e)
        return self._opener(self.interface, None)

    def open(self):
        try:
            if self.interface is None:
                self.interface = select_interface()
            self._handle = self._open_handle()
        except WhisperError:
            self.state = FAULTED
            raise
        except (OSError, ValueError) as e:
            self.state = FAULTED
            raise CaptureOpenError(f"cannot open capture on {self.interface}: {e}") from e
        self.state = OPEN
        log.info("capturing on %s (%s)", self.interface, f"filter {self.capture_filter!r}" if self.filtered else "unfiltered")
        return self

    def close(self):
        if self._handle is not None:
            handle, self._handle = self._handle, None
            try:
                handle.close()
            except OSError as e:
                log.debug("error closing capture on %s: %s", self.interface, e)
            log.info("capture on %s closed", self.interface)
        super().close()

    def __iter__(self) -> t.Iterator[RawFrame]:
        self._start_listening()
        while self._handle is not None:
            try:
                _cls, data, ts = self._handle.recv_raw()
            except OSError as e:
                if self._handle is None:
                    break
                log.warning("receive error on %s: %s", self.interface, e)
                continue
            if not data:
                continue
            yield RawFrame(ts=float(ts) if ts is not None else time.time(), data=bytes(data))


class SocketSource(PacketSource):
    """UDP socket on the DHCP server port; yields payloads, not frames."""

    yields_frames = False

    def __init__(self, address: t.Optional[str] = None, port: int = DHCP_SERVER_PORT):
        super().__init__()
        self.address = address
        self.port = port
        self._sock: t.Optional[socket.socket] = None

    @property
    def bound_address(self) -> t.Optional[t.Tuple[str, int]]:
        return self._sock.getsockname() if self._sock is not None else None

    def open(self):
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind((self.address or "", self.port))
        except OSError as e:
            if sock is not None:
                sock.close()
            self.state = FAULTED
            raise BindError(f"cannot bind UDP {self.address or '*'}:{self.port}: {e}") from e
        self._sock = sock
        self.state = OPEN
        log.info("listening on UDP %s:%d", self.address or "*", self.port)
        return self

    def close(self):
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()
            log.info("socket on UDP %s:%d closed", self.address or "*", self.port)
        super().close()

    def __iter__(self) -> t.Iterator[bytes]:
        self._start_listening()
        while self._sock is not None:
            try:
                data, peer = self._sock.recvfrom(RECV_BUFSIZE)
            except OSError as e:
                if self._sock is None:
                    break
                log.warning("receive error on UDP port %d: %s", self.port, e)
                continue
            log.debug("%d bytes from %s:%d", len(data), peer[0], peer[1])
            yield data


class ReplaySource(PacketSource):
    """Replay a pcap/pcapng file through the frame pipeline, then stop."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._packets = None

    def open(self):
        if not os.path.exists(self.path):
            self.state = FAULTED
            raise CaptureOpenError(f"capture file not found: {self.path}")
        try:
            fmt = sniff_format(self.path)
        except OSError as e:
            self.state = FAULTED
            raise CaptureOpenError(f"cannot read capture file {self.path}: {e}") from e
        self._packets = iter_packets(self.path, fmt)
        self.state = OPEN
        log.info("replaying %s", self.path)
        return self

    def close(self):
        if self._packets is not None:
            packets, self._packets = self._packets, None
            packets.close()
        super().close()

    def __iter__(self) -> t.Iterator[RawFrame]:
        self._start_listening()
        try:
            for ts, raw in self._packets:
                yield RawFrame(ts=ts, data=raw)
        except (ValueError, OSError, dpkt.UnpackError, PcapngException) as e:
            self.state = FAULTED
            raise CaptureOpenError(f"unreadable capture file {self.path}: {e}") from e
        finally:
            self.close()

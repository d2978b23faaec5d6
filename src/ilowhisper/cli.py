"""Command-line entry point for ilowhisper."""
from __future__ import annotations

import argparse
import logging

from . import __version__
from .config import DHCP_SERVER_PORT, WhisperConfig
from .errors import FaultedError, NotFoundError
from .logging_config import setup_logging
from .pipeline import Discovery
from .sources import CaptureSource, ReplaySource, SocketSource

EXIT_OK = 0
EXIT_FATAL = 1


def build_parser():
    p = argparse.ArgumentParser(prog="ilowhisper", description="Find unconfigured iLO management processors by watching DHCP broadcasts")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log", default="WARNING", help="Log level (default: WARNING)")
    sub = p.add_subparsers(dest="cmd")
    c = sub.add_parser("capture", help="Sniff DHCP traffic passively (works alongside a DHCP server)")
    src = c.add_mutually_exclusive_group()
    src.add_argument("--interface", "-i", help="Interface to capture on (default: first Ethernet, non-loopback interface)")
    src.add_argument("--pcap-file", help="Replay a pcap/pcapng file instead of capturing live")
    c.add_argument("--no-filter", action="store_true", help="Do not install the udp capture filter")
    s = sub.add_parser("listen", help="Bind the DHCP server port (needs the port to be free)")
    s.add_argument("--address", "-a", help="Local address to bind (default: all addresses)")
    s.add_argument("--port", type=int, default=DHCP_SERVER_PORT, help=argparse.SUPPRESS)
    return p, {"capture": c, "listen": s}


def make_source(cmd: str, cfg: WhisperConfig):
    if cmd == "listen":
        return SocketSource(address=cfg.address, port=cfg.port)
    if cfg.pcap_file:
        return ReplaySource(cfg.pcap_file)
    return CaptureSource(interface=cfg.interface, capture_filter=cfg.capture_filter)


def main(argv=None) -> int:
    parser, _ = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log)
    log = logging.getLogger("ilowhisper.cli")
    if args.cmd is None:
        parser.print_help()
        return EXIT_OK

    cfg = WhisperConfig.from_args(args)
    source = make_source(args.cmd, cfg)
    discovery = Discovery(config=cfg)
    try:
        with source:
            discovery.run(source)
    except (FaultedError, NotFoundError) as e:
        cause = f" ({e.__cause__})" if e.__cause__ is not None and str(e.__cause__) not in str(e) else ""
        log.error("%s%s", e, cause)
        return EXIT_FATAL
    except KeyboardInterrupt:
        log.info("interrupted, %d device(s) found", len(discovery.reporter.seen))
    return EXIT_OK

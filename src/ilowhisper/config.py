"""Runtime settings for a discovery run.

There is no configuration file; defaults live here as module constants and
the CLI overrides them from its flags.
"""
from __future__ import annotations

import dataclasses
import typing as t

DHCP_SERVER_PORT = 67
# vendor-class-identifier sent by iLO before it has an address
VENDOR_CLASS = b"CPQRIB3"
# iLO default host names are "ILO" + serial number
NAME_PREFIX = "ILO"
FAMILY = "iLO"
CAPTURE_FILTER = "udp"


@dataclasses.dataclass
class WhisperConfig:
    vendor_class: bytes = VENDOR_CLASS
    name_prefix: str = NAME_PREFIX
    family: str = FAMILY
    port: int = DHCP_SERVER_PORT
    capture_filter: t.Optional[str] = CAPTURE_FILTER
    interface: t.Optional[str] = None
    address: t.Optional[str] = None
    pcap_file: t.Optional[str] = None

    @classmethod
    def from_args(cls, args) -> "WhisperConfig":
        """Build a config from an argparse namespace, ignoring unset flags."""
        cfg = cls()
        for field in ("interface", "address", "pcap_file", "port"):
            value = getattr(args, field, None)
            if value is not None:
                setattr(cfg, field, value)
        if getattr(args, "no_filter", False):
            cfg.capture_filter = None
        return cfg

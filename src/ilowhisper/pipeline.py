"""Discovery pipeline: frame/payload -> DHCP message -> sighting -> report.

Every packet ends up with exactly one outcome tag. Only REPORTED writes
anything to the output stream; ERROR is logged at debug level so a noisy
segment never drowns the report lines.
"""
from __future__ import annotations

import collections
import logging
import typing as t

from . import dhcp, frame, identity
from .config import WhisperConfig
from .errors import DecodeError
from .reporter import DedupReporter

log = logging.getLogger("ilowhisper.pipeline")

REPORTED = "reported"
DUPLICATE = "duplicate"
SKIPPED = "skipped"
IRRELEVANT = "irrelevant"
ERROR = "error"


class Discovery:
    def __init__(self, reporter: t.Optional[DedupReporter] = None, config: t.Optional[WhisperConfig] = None):
        self.config = config or WhisperConfig()
        self.reporter = reporter or DedupReporter(family=self.config.family)

    def process_payload(self, payload: bytes) -> str:
        try:
            msg = dhcp.parse(payload)
        except DecodeError as e:
            log.debug("dropping %d-byte payload: %s", len(payload), e)
            return ERROR
        sighting = identity.extract(msg, vendor_class=self.config.vendor_class, prefix=self.config.name_prefix)
        if sighting is None:
            return SKIPPED
        log.debug("iLO DHCP message type %s xid 0x%08x from %s (%s)", msg.msgtype, msg.xid, sighting.name, sighting.mac)
        return REPORTED if self.reporter.report(sighting) else DUPLICATE

    def process_frame(self, raw: frame.RawFrame) -> str:
        result = frame.decode(raw, port=self.config.port)
        if result.status == frame.IRRELEVANT:
            return IRRELEVANT
        if result.status == frame.ERROR:
            log.debug("dropping %d-byte frame at %.6f: %s", raw.length, raw.ts, result.error)
            return ERROR
        return self.process_payload(result.datagram.payload)

    def run(self, source) -> collections.Counter:
        """Feed every item `source` produces through the pipeline.

        Returns outcome counts once the source is exhausted; for live sources
        that only happens when the source is closed from elsewhere.
        """
        counts: collections.Counter = collections.Counter()
        handle = self.process_frame if source.yields_frames else self.process_payload
        for item in source:
            counts[handle(item)] += 1
        log.info("source finished: %s", ", ".join(f"{k}={counts[k]}" for k in sorted(counts)) or "no packets")
        return counts

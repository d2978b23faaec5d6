"""Report each discovered device once per run."""
from __future__ import annotations

import logging
import sys
import threading
import typing as t

from .config import FAMILY
from .identity import DeviceSighting

log = logging.getLogger("ilowhisper.reporter")

LINE_FORMAT = "identified unconfigured {family} subsystem: {name} @ {mac}\n"


class DedupReporter:
    """Write one line per device name to `stream`, ignoring repeat sightings.

    Each instance owns its own set of seen names, so separate runs (or
    tests) never share state. `stream` defaults to whatever `sys.stdout` is
    at report time.
    """

    def __init__(self, stream: t.Optional[t.TextIO] = None, family: str = FAMILY, seen: t.Optional[set] = None):
        self._stream = stream
        self.family = family
        self.seen: set[str] = seen if seen is not None else set()
        self._lock = threading.Lock()

    def report(self, sighting: DeviceSighting) -> bool:
        with self._lock:
            if sighting.name in self.seen:
                return False
            self.seen.add(sighting.name)
            stream = self._stream or sys.stdout
            stream.write(LINE_FORMAT.format(family=self.family, name=sighting.name, mac=sighting.mac))
            stream.flush()
        log.debug("new device %s (%s), %d seen so far", sighting.name, sighting.mac, len(self.seen))
        return True

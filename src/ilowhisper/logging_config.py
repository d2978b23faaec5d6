import logging

# scapy announces missing optional backends on import at WARNING; keep the
# console quiet unless the user asked for debug output.
_NOISY_LOGGERS = ("scapy.runtime", "scapy.loading")


def setup_logging(level: str = "INFO"):
    levelno = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    logging.basicConfig(level=levelno, format=fmt)
    if levelno > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.ERROR)

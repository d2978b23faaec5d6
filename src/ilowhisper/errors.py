"""Exception hierarchy shared by the decode stages and the packet sources.

`DecodeError` subclasses are per-packet and recoverable: the pipeline logs
them and drops the packet. `FaultedError` and `NotFoundError` are fatal and
are only raised while a source is being opened.
"""
from __future__ import annotations


class WhisperError(Exception):
    """Base class for every error raised by ilowhisper."""


class DecodeError(WhisperError):
    """A packet could not be decoded at some layer."""


class LinkDecodeError(DecodeError):
    pass


class NetworkDecodeError(DecodeError):
    pass


class TransportDecodeError(DecodeError):
    pass


class ParseError(DecodeError):
    """The UDP payload is not a readable DHCP message."""


class FaultedError(WhisperError):
    """A packet source could not be opened."""


class CaptureOpenError(FaultedError):
    pass


class BindError(FaultedError):
    pass


class NotFoundError(WhisperError):
    """No usable network interface was found."""


class FilterInstallError(WhisperError):
    """The capture filter could not be compiled or attached; capture can go on without it."""

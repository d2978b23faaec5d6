import logging

from ilowhisper import pipeline
from ilowhisper.frame import RawFrame
from tests.frames import build_dhcp, build_tcp_frame, build_udp_frame

EXPECTED = "identified unconfigured iLO subsystem: USE1234567 @ 02:1a:2b:3c:4d:5e\n"


class ListSource:
    def __init__(self, items, yields_frames=True):
        self.items = items
        self.yields_frames = yields_frames

    def __iter__(self):
        return iter(self.items)


def test_end_to_end_payload(discovery, out):
    assert discovery.process_payload(build_dhcp()) == pipeline.REPORTED
    assert out.getvalue() == EXPECTED


def test_replayed_payload_reported_once(discovery, out):
    payload = build_dhcp()
    outcomes = [discovery.process_payload(payload) for _ in range(10)]
    assert outcomes == [pipeline.REPORTED] + [pipeline.DUPLICATE] * 9
    assert out.getvalue() == EXPECTED


def test_unparseable_payload_is_silent(discovery, out):
    assert discovery.process_payload(b"\x01\x02\x03") == pipeline.ERROR
    assert discovery.process_payload(b"\x00" * 300) == pipeline.ERROR
    assert out.getvalue() == ""


def test_foreign_vendor_is_skipped(discovery, out):
    assert discovery.process_payload(build_dhcp(vendor_class=b"MSFT 5.0")) == pipeline.SKIPPED
    assert discovery.process_payload(build_dhcp(vendor_class=None)) == pipeline.SKIPPED
    assert out.getvalue() == ""


def test_frames_through_run(discovery, out):
    a = build_dhcp(hostname=b"ILOAAA")
    b = build_dhcp(hostname=b"ILOBBB", chaddr=b"\x00\x11\x22\x33\x44\x55")
    frames = [
        build_tcp_frame(),
        build_udp_frame(a),
        build_udp_frame(b"garbage"),
        build_udp_frame(b, dport=68),
        build_udp_frame(b),
        build_udp_frame(a),
        b"\x00" * 5,
    ]
    source = ListSource([RawFrame(ts=float(i), data=f) for i, f in enumerate(frames)])
    counts = discovery.run(source)
    assert out.getvalue().splitlines() == [
        "identified unconfigured iLO subsystem: AAA @ 02:1a:2b:3c:4d:5e",
        "identified unconfigured iLO subsystem: BBB @ 00:11:22:33:44:55",
    ]
    assert counts[pipeline.REPORTED] == 2
    assert counts[pipeline.DUPLICATE] == 1
    assert counts[pipeline.IRRELEVANT] == 2
    assert counts[pipeline.ERROR] == 2


def test_run_with_payload_source(discovery, out):
    counts = discovery.run(ListSource([build_dhcp(), build_dhcp(), b"x"], yields_frames=False))
    assert out.getvalue() == EXPECTED
    assert counts == {pipeline.REPORTED: 1, pipeline.DUPLICATE: 1, pipeline.ERROR: 1}


def test_sighting_logs_message_type(discovery, caplog):
    with caplog.at_level(logging.DEBUG, logger="ilowhisper.pipeline"):
        discovery.process_payload(build_dhcp())
    assert "message type 1 xid 0x00001234 from USE1234567" in caplog.text

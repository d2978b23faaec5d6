"""dpkt builders for synthetic DHCP traffic used across the tests."""
import socket

import dpkt

ILO_MAC = b"\x02\x1a\x2b\x3c\x4d\x5e"


def build_dhcp(hostname=b"ILOUSE1234567", vendor_class=b"CPQRIB3", chaddr=ILO_MAC, hln=6, extra_opts=()):
    opts = [(53, bytes([dpkt.dhcp.DHCPDISCOVER]))]
    if vendor_class is not None:
        opts.append((60, vendor_class))
    if hostname is not None:
        opts.append((12, hostname))
    opts.extend(extra_opts)
    msg = dpkt.dhcp.DHCP(op=dpkt.dhcp.DHCP_OP_REQUEST, hln=hln, xid=0x1234, chaddr=chaddr, opts=opts)
    return bytes(msg)


def build_udp_frame(payload, sport=68, dport=67, src_mac=ILO_MAC):
    udp = dpkt.udp.UDP(sport=sport, dport=dport, data=payload)
    udp.ulen = len(udp)
    ip = dpkt.ip.IP(
        src=socket.inet_aton("0.0.0.0"),
        dst=socket.inet_aton("255.255.255.255"),
        p=dpkt.ip.IP_PROTO_UDP,
        data=udp,
    )
    ip.len = len(ip)
    eth = dpkt.ethernet.Ethernet(src=src_mac, dst=b"\xff" * 6, type=dpkt.ethernet.ETH_TYPE_IP, data=ip)
    return bytes(eth)


def build_tcp_frame():
    tcp = dpkt.tcp.TCP(sport=12345, dport=67, flags=dpkt.tcp.TH_SYN, seq=1000)
    ip = dpkt.ip.IP(
        src=socket.inet_aton("192.0.2.1"),
        dst=socket.inet_aton("198.51.100.2"),
        p=dpkt.ip.IP_PROTO_TCP,
        data=tcp,
    )
    ip.len = len(ip)
    eth = dpkt.ethernet.Ethernet(src=ILO_MAC, dst=b"\xff" * 6, type=dpkt.ethernet.ETH_TYPE_IP, data=ip)
    return bytes(eth)


def write_pcap(path, frames):
    with open(path, "wb") as fh:
        writer = dpkt.pcap.Writer(fh)
        for i, raw in enumerate(frames):
            writer.writepkt(raw, ts=1.0 + i)
        writer.close()

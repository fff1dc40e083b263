import struct

import pytest

from tcpblock.mac import Mac
from tcpblock.packet import (
    BLOCK_TTL,
    WARNING_PAGE,
    HeaderLengths,
    TcpFlag,
    build_backward,
    build_forward,
    checksum,
    find_pattern,
    match_frame,
)

CLIENT = bytes([192, 0, 2, 10])
SERVER = bytes([198, 51, 100, 20])
CLIENT_PORT = 51000
SERVER_PORT = 80
GATEWAY_MAC = bytes.fromhex("020000000001")
CLIENT_MAC = bytes.fromhex("020000000002")
OWN_MAC = Mac("02:00:00:00:00:99")
REQUEST = b"GET / HTTP/1.1\r\nHost: blocked.example.com\r\n\r\n"
PATTERN = b"Host: blocked.example.com"


def make_frame(
    payload=REQUEST,
    *,
    proto=6,
    ethertype=0x0800,
    tcp_options=b"",
    seq=1000,
    ack=2000,
):
    tcp_len = 20 + len(tcp_options)
    tcp = (
        struct.pack(
            "!HHIIBBHHH",
            CLIENT_PORT,
            SERVER_PORT,
            seq,
            ack,
            (tcp_len // 4) << 4,
            TcpFlag.PUSH | TcpFlag.ACK,
            64240,
            0,
            0,
        )
        + tcp_options
    )
    ip = struct.pack(
        "!BBHHHBBH4s4s",
        0x45,
        0,
        20 + len(tcp) + len(payload),
        1,
        0x4000,
        64,
        proto,
        0,
        CLIENT,
        SERVER,
    )
    eth = GATEWAY_MAC + CLIENT_MAC + struct.pack("!H", ethertype)
    return eth + ip + tcp + payload


def tcp_verifies(src, dst, segment):
    pseudo = src + dst + struct.pack("!BBH", 0, 6, len(segment))
    return checksum(pseudo + segment) == 0


def test_checksum_of_known_header():
    header = bytes.fromhex("450000730000400040110000c0a80001c0a800c7")
    assert checksum(header) == 0xB861


def test_checksum_verifies_to_zero():
    header = bytearray(bytes.fromhex("450000730000400040110000c0a80001c0a800c7"))
    struct.pack_into("!H", header, 10, checksum(header))
    assert checksum(header) == 0


def test_checksum_pads_odd_length():
    assert checksum(b"\x12\x34\x56") == checksum(b"\x12\x34\x56\x00")


def test_find_pattern_found():
    data = b"abc Host: x def"
    assert find_pattern(data, b"Host: x") == data.index(b"Host: x")


def test_find_pattern_absent():
    assert find_pattern(b"abcdef", b"xyz") is None


def test_find_pattern_stops_at_nul():
    assert find_pattern(b"abc\x00Host", b"Host") is None


def test_find_pattern_empty_pattern():
    assert find_pattern(b"abc", b"") == 0


def test_find_pattern_accepts_text():
    assert find_pattern(b"--needle--", "needle") == 2


def test_match_frame_reports_lengths():
    assert match_frame(make_frame(), PATTERN) == HeaderLengths(20, 20, len(REQUEST))


def test_match_frame_with_tcp_options():
    options = b"\x01\x01\x08\x0a" + bytes(8)
    result = match_frame(make_frame(tcp_options=options), PATTERN)
    assert result == HeaderLengths(20, 20 + len(options), len(REQUEST))


@pytest.mark.parametrize(
    "frame",
    [
        make_frame(ethertype=0x86DD),
        make_frame(proto=17),
        make_frame(payload=b"GET / HTTP/1.1\r\nHost: other.example.com\r\n\r\n"),
        make_frame(payload=b"Host"),
        make_frame()[:30],
    ],
)
def test_match_frame_rejects(frame):
    assert match_frame(frame, PATTERN) is None


def test_forward_packet():
    frame = make_frame()
    lengths = match_frame(frame, PATTERN)
    packet = build_forward(frame, OWN_MAC, lengths)

    assert len(packet) == 14 + 20 + 20
    assert packet[:6] == GATEWAY_MAC
    assert packet[6:12] == bytes(OWN_MAC)
    ip, tcp = packet[14:34], packet[34:]
    assert struct.unpack_from("!H", ip, 2)[0] == 40
    assert checksum(ip) == 0
    assert struct.unpack_from("!I", tcp, 4)[0] == 1000 + len(REQUEST)
    assert struct.unpack_from("!I", tcp, 8)[0] == 2000
    assert tcp[13] == TcpFlag.RST | TcpFlag.ACK
    assert tcp_verifies(CLIENT, SERVER, tcp)


def test_forward_sequence_wraps():
    payload = b"x" * 40
    frame = make_frame(payload=payload, seq=0xFFFFFFF0)
    packet = build_forward(frame, OWN_MAC, match_frame(frame, b"xx"))
    assert struct.unpack_from("!I", packet, 38)[0] == 0x18


def test_forward_rejects_short_frame():
    with pytest.raises(ValueError):
        build_forward(make_frame()[:40], OWN_MAC, HeaderLengths(20, 20, 0))


def test_backward_packet():
    frame = make_frame()
    lengths = match_frame(frame, PATTERN)
    packet, destination = build_backward(frame, lengths)

    assert destination == ("192.0.2.10", CLIENT_PORT)
    assert len(packet) == 40 + len(WARNING_PAGE)
    assert packet.endswith(WARNING_PAGE)
    ip, segment = packet[:20], packet[20:]
    assert ip[12:16] == SERVER
    assert ip[16:20] == CLIENT
    assert ip[8] == BLOCK_TTL
    assert struct.unpack_from("!H", ip, 2)[0] == len(packet)
    assert checksum(ip) == 0

    sport, dport, seq, ack = struct.unpack_from("!HHII", segment)
    assert (sport, dport) == (SERVER_PORT, CLIENT_PORT)
    assert seq == 2000
    assert ack == 1000 + len(REQUEST)
    assert segment[13] == TcpFlag.FIN | TcpFlag.ACK
    assert tcp_verifies(SERVER, CLIENT, segment)


def test_backward_rejects_short_frame():
    with pytest.raises(ValueError):
        build_backward(make_frame()[:20], HeaderLengths(20, 20, 0))
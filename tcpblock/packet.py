"""Recognising blocked TCP traffic and forging the segments that end it."""

from __future__ import annotations

import enum
import ipaddress
import struct
from dataclasses import dataclass

from .mac import Mac

ETH_LEN = 14
ETHERTYPE_IP = 0x0800
IPPROTO_TCP = 6
BLOCK_TTL = 128
MIN_IP_LEN = 20
MIN_TCP_LEN = 20

WARNING_PAGE = (
    b"HTTP/1.0 302 Redirect\r\n"
    b"Location: http://warning.example.com/\r\n"
    b"\r\n"
)

_SEQ_MASK = 0xFFFFFFFF


class TcpFlag(enum.IntFlag):
    FIN = 0x01
    SYN = 0x02
    RST = 0x04
    PUSH = 0x08
    ACK = 0x10
    URG = 0x20


@dataclass(frozen=True)
class HeaderLengths:
    """Sizes, in bytes, of the IPv4 header, TCP header and TCP payload."""

    ip_len: int
    tcp_len: int
    payload_len: int


def _as_bytes(pattern) -> bytes:
    return pattern.encode() if isinstance(pattern, str) else bytes(pattern)


def checksum(data) -> int:
    """Internet checksum of ``data``; an odd trailing byte is zero-padded."""
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    total = sum(word for (word,) in struct.iter_unpack("!H", data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return (total ^ 0xFFFF) & 0xFFFF


def find_pattern(data, pattern) -> int | None:
    """Offset of ``pattern`` in ``data``, searching no further than the first NUL."""
    data = bytes(data)
    pattern = _as_bytes(pattern)
    end = data.find(b"\x00")
    if end >= 0:
        data = data[:end]
    index = data.find(pattern)
    return None if index < 0 else index


def match_frame(frame, pattern) -> HeaderLengths | None:
    """Header sizes of an Ethernet/IPv4/TCP frame whose payload holds ``pattern``.

    Returns ``None`` for any other frame.
    """
    frame = bytes(frame)
    pattern = _as_bytes(pattern)
    if len(frame) < ETH_LEN + MIN_IP_LEN:
        return None
    (ethertype,) = struct.unpack_from("!H", frame, 12)
    if ethertype != ETHERTYPE_IP:
        return None
    ip_len = (frame[ETH_LEN] & 0x0F) * 4
    if frame[ETH_LEN + 9] != IPPROTO_TCP:
        return None
    tcp_start = ETH_LEN + ip_len
    if len(frame) < tcp_start + MIN_TCP_LEN:
        return None
    tcp_len = (frame[tcp_start + 12] >> 4) * 4
    (total_len,) = struct.unpack_from("!H", frame, ETH_LEN + 2)
    payload_len = total_len - ip_len - tcp_len
    if payload_len < len(pattern):
        return None
    data_start = tcp_start + tcp_len
    if find_pattern(frame[data_start : data_start + payload_len], pattern) is None:
        return None
    return HeaderLengths(ip_len, tcp_len, payload_len)


def _require(frame: bytes, size: int) -> None:
    if len(frame) < size:
        raise ValueError(f"frame holds {len(frame)} bytes, headers need {size}")


def _seal_ip(packet: bytearray, start: int, length: int) -> None:
    struct.pack_into("!H", packet, start + 10, 0)
    struct.pack_into("!H", packet, start + 10, checksum(packet[start : start + length]))


def _seal_tcp(packet: bytearray, start: int, src: bytes, dst: bytes) -> None:
    segment_len = len(packet) - start
    pseudo = src + dst + struct.pack("!BBH", 0, IPPROTO_TCP, segment_len)
    struct.pack_into("!H", packet, start + 16, ~checksum(pseudo) & 0xFFFF)
    struct.pack_into("!H", packet, start + 16, checksum(packet[start:]))


def build_forward(frame, mac, lengths: HeaderLengths) -> bytes:
    """An Ethernet frame that resets the connection towards its destination.

    The headers of ``frame`` are kept, the payload dropped, the source
    hardware address replaced by ``mac`` and the sequence number moved
    past the payload.
    """
    frame = bytes(frame)
    ip_start = ETH_LEN
    tcp_start = ip_start + lengths.ip_len
    end = tcp_start + lengths.tcp_len
    _require(frame, end)
    packet = bytearray(frame[:end])

    packet[6:12] = bytes(Mac(mac))

    struct.pack_into("!H", packet, ip_start + 2, lengths.ip_len + lengths.tcp_len)
    _seal_ip(packet, ip_start, lengths.ip_len)

    (seq,) = struct.unpack_from("!I", packet, tcp_start + 4)
    struct.pack_into("!I", packet, tcp_start + 4, (seq + lengths.payload_len) & _SEQ_MASK)
    packet[tcp_start + 13] = TcpFlag.RST | TcpFlag.ACK

    src = bytes(packet[ip_start + 12 : ip_start + 16])
    dst = bytes(packet[ip_start + 16 : ip_start + 20])
    _seal_tcp(packet, tcp_start, src, dst)
    return bytes(packet)


def build_backward(frame, lengths: HeaderLengths) -> tuple[bytes, tuple[str, int]]:
    """An IPv4 packet that answers the sender with a redirect and FIN.

    Returns the packet, starting at its IP header, and the
    ``(address, port)`` of the original sender it is meant for.
    """
    frame = bytes(frame)
    end = ETH_LEN + lengths.ip_len + lengths.tcp_len
    _require(frame, end)
    packet = bytearray(frame[ETH_LEN:end]) + WARNING_PAGE
    tcp_start = lengths.ip_len

    src = bytes(packet[12:16])
    dst = bytes(packet[16:20])
    sport, dport, seq, ack = struct.unpack_from("!HHII", packet, tcp_start)
    destination = (str(ipaddress.IPv4Address(src)), sport)

    packet[12:16] = dst
    packet[16:20] = src
    packet[8] = BLOCK_TTL
    struct.pack_into("!H", packet, 2, len(packet))
    _seal_ip(packet, 0, lengths.ip_len)

    struct.pack_into(
        "!HHII",
        packet,
        tcp_start,
        dport,
        sport,
        ack,
        (seq + lengths.payload_len) & _SEQ_MASK,
    )
    packet[tcp_start + 13] = TcpFlag.FIN | TcpFlag.ACK
    _seal_tcp(packet, tcp_start, dst, src)
    return bytes(packet), destination
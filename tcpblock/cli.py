"""Command line entry point: watch an interface and cut off TCP flows
whose payload carries a pattern."""

from __future__ import annotations

import contextlib
import socket
import struct
import sys
from dataclasses import dataclass
from typing import NamedTuple

from .mac import Mac
from .packet import build_backward, build_forward, match_frame

try:
    import fcntl
except ImportError:  # not available on every platform
    fcntl = None

USAGE = (
    "syntax : tcp-block <interface> <pattern>\n"
    'sample : tcp-block wlan0 "Host: test.example.com"'
)

_SNAPLEN = 8192
_ETH_P_ALL = 0x0003
_SIOCGIFHWADDR = 0x8927
_IFNAMSIZ = 16
_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1
_IP_HDRINCL = getattr(socket, "IP_HDRINCL", 3)


class UsageError(Exception):
    """The command line does not name an interface and a pattern."""


class Params(NamedTuple):
    dev: str
    pattern: str


@dataclass(frozen=True)
class _Response:
    forward: bytes
    backward: bytes
    destination: tuple[str, int]


def parse_args(argv) -> Params:
    """Interface and pattern from the arguments that follow the program name."""
    args = list(argv)
    if len(args) != 2:
        raise UsageError(USAGE)
    return Params(args[0], args[1])


def get_interface_mac(dev) -> Mac:
    """Hardware address of the network interface ``dev``."""
    if fcntl is None:
        raise OSError("reading an interface address is not supported here")
    request = struct.pack(f"{_IFNAMSIZ}s240x", dev.encode()[: _IFNAMSIZ - 1])
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        reply = fcntl.ioctl(sock.fileno(), _SIOCGIFHWADDR, request)
    # struct ifreq: name[16], then sockaddr { family[2], data[14] }
    return Mac(reply[_IFNAMSIZ + 2 : _IFNAMSIZ + 2 + Mac.SIZE])


def _respond(frame, pattern, mac) -> _Response | None:
    """The forged frames that block ``frame``, or None if it is not blocked."""
    lengths = match_frame(frame, pattern)
    if lengths is None:
        return None
    forward = build_forward(frame, mac, lengths)
    backward, destination = build_backward(frame, lengths)
    return _Response(forward, backward, destination)


def _open_injector() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_TCP)
    try:
        sock.setsockopt(socket.IPPROTO_IP, _IP_HDRINCL, 1)
    except OSError:
        sock.close()
        raise
    return sock


def _open_capture(dev: str) -> socket.socket:
    family = getattr(socket, "AF_PACKET", None)
    if family is None:
        raise OSError("packet capture is not supported here")
    sock = socket.socket(family, socket.SOCK_RAW, socket.htons(_ETH_P_ALL))
    try:
        sock.bind((dev, _ETH_P_ALL))
        mreq = struct.pack(
            "iHH8s", socket.if_nametoindex(dev), _PACKET_MR_PROMISC, 0, b""
        )
        sock.setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, mreq)
    except OSError:
        sock.close()
        raise
    return sock


def run(dev, pattern) -> None:
    """Block every TCP flow on ``dev`` whose payload holds ``pattern``.

    Runs until capturing fails.
    """
    mac = get_interface_mac(dev)
    with _open_injector() as injector, _open_capture(dev) as capture:
        while True:
            try:
                frame = capture.recv(_SNAPLEN)
            except OSError as exc:
                print(f"capture stopped: {exc}")
                return
            response = _respond(frame, pattern, mac)
            if response is None:
                continue
            with contextlib.suppress(OSError):
                capture.send(response.forward)
            with contextlib.suppress(OSError):
                injector.sendto(response.backward, response.destination)


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        params = parse_args(argv)
    except UsageError as exc:
        print(exc)
        return 1
    try:
        run(params.dev, params.pattern)
    except OSError as exc:
        print(f"tcp-block: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
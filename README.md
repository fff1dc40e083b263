# tcpblock

`tcpblock` watches the traffic on a network interface and cuts off every
TCP connection whose payload contains a given pattern.

For each captured Ethernet/IPv4/TCP frame whose payload holds the pattern,
two segments are sent:

* **forward**: a copy of the frame's headers with the payload dropped,
  the RST and ACK flags set, the sequence number moved past the payload
  and the interface's own hardware address as the Ethernet source. It is
  sent back out of the capturing interface, so the original destination
  drops the connection.
* **backward**: an IPv4 packet to the original sender with addresses and
  ports swapped, TTL 128, the FIN and ACK flags set, carrying an HTTP
  `302 Redirect` to `http://warning.example.com/`. It is sent through a
  raw IP socket.

## Installation

```
pip install .
```

## Usage

```
tcp-block <interface> <pattern>
```

For example:

```
sudo tcp-block eth0 "Host: test.example.com"
```

Exactly two arguments are expected; otherwise the usage text is printed
and the command exits with status 1. The command runs until capturing
fails. It exits with status 1 if the interface address cannot be read or
a socket cannot be opened, and with status 130 when interrupted.

It works on Linux only: it reads the interface's hardware address with
an `ioctl`, captures with an `AF_PACKET` socket in promiscuous mode and
needs the privileges to open raw sockets (root or `CAP_NET_RAW`). Failures
to send a forged segment are ignored.

The pattern is searched for only up to the first NUL byte of a payload.

## Library use

The packet handling can be used without the command:

* `tcpblock.mac.Mac`: an immutable six-octet hardware address. It is built
  from another `Mac`, six raw bytes, or text in which every character that
  is not a hexadecimal digit is ignored (`"00:11:22:33:44:55"` and
  `"001122-334455"` are the same address). It compares, orders and hashes
  by its octets; `str()` gives `AA:BB:CC:DD:EE:FF` and `bytes()` the raw
  octets. `is_null()`, `is_broadcast()` and `is_multicast()` test it;
  `Mac.null()`, `Mac.broadcast()` and `Mac.random()` build addresses.
* `tcpblock.packet.checksum(data)`: the Internet checksum, an odd trailing
  byte zero-padded.
* `tcpblock.packet.find_pattern(data, pattern)`: offset of the pattern,
  or `None`.
* `tcpblock.packet.match_frame(frame, pattern)`: a `HeaderLengths`
  (`ip_len`, `tcp_len`, `payload_len`) when the frame is IPv4/TCP and its
  payload holds the pattern, otherwise `None`.
* `tcpblock.packet.build_forward(frame, mac, lengths)`: the forward
  Ethernet frame as bytes.
* `tcpblock.packet.build_backward(frame, lengths)`: the backward IPv4
  packet and the `(address, port)` of the original sender.
* `tcpblock.cli.parse_args`, `get_interface_mac`, `run` and `main` are the
  pieces of the command.

## Running the tests

```
pip install .[test]
pytest
```
from __future__ import annotations

import logging
import os
import select
import socket
import struct
import time
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ._exceptions import RawSocketPermissionError
from ._models import Arrived, Outcome, Relayed, Silent

ICMP_ECHO_REQUEST = 8
ICMP_ECHO_REPLY = 0
ICMP_TIME_EXCEEDED = 11
ICMP_DEST_UNREACHABLE = 3

ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129
ICMPV6_TIME_EXCEEDED = 3
ICMPV6_DEST_UNREACHABLE = 1

IPV4_HEADER_LEN = 20
IPV6_HEADER_LEN = 40


# ------------- Logger configuravel
console = Console()
logger = logging.getLogger("hoptrace")


def configure_logging(level: int | str = logging.WARNING, stderr: bool = False) -> None:
    """Route hoptrace logs through a RichHandler.

    Logs share the module console unless ``stderr`` is set, which keeps them
    out of a table being redrawn on stdout.
    """
    handler = RichHandler(
        console=Console(stderr=True) if stderr else console,
        rich_tracebacks=True,
        markup=True,
        show_time=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


@dataclass
class IcmpPacket:
    type: int
    code: int
    checksum: int
    id: int
    sequence: int
    data: bytes


@dataclass
class SentPacket:
    icmp_packet: IcmpPacket
    timestamp: float
    destination: str


@dataclass
class ReceivedPacket:
    src_addr: str
    icmp_packet: IcmpPacket
    received_at: float


class Icmp:
    """Raw socket echo transport for IPv4 and IPv6.

    ``echo`` sends one Echo Request with a bounded TTL and classifies whatever
    comes back into one of the three probe outcomes.
    """

    def __init__(self) -> None:
        self.seq_number = 0
        self.identifier = os.getpid() & 0xFFFF
        self._socks: dict[int, socket.socket] = {}

    def sock(self, family: int = socket.AF_INET) -> socket.socket:
        sock = self._socks.get(family)
        if sock is None:
            proto = (
                socket.IPPROTO_ICMPV6
                if family == socket.AF_INET6
                else socket.getprotobyname("icmp")
            )
            try:
                sock = socket.socket(family, socket.SOCK_RAW, proto)
            except PermissionError as exc:
                message = (
                    "Raw socket requires elevated privileges. Use sudo or grant "
                    "CAP_NET_RAW to the Python interpreter."
                )
                raise RawSocketPermissionError(message) from exc
            self._socks[family] = sock
        return sock

    def open(self, address: str) -> None:
        """Acquire the socket for ``address`` up front so permission errors surface early."""
        self.sock(self._family(address))

    @staticmethod
    def _family(address: str) -> int:
        return socket.AF_INET6 if ":" in address else socket.AF_INET

    def close(self) -> None:
        socks, self._socks = self._socks, {}
        for sock in socks.values():
            sock.close()

    def __enter__(self) -> "Icmp":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _parse_ipv4(self, pkt: bytes, received_at: float) -> ReceivedPacket:
        if len(pkt) < IPV4_HEADER_LEN:
            raise ValueError("Packet shorter than minimum IP header length (20 bytes).")

        iph = struct.unpack("!BBHHHBBH4s4s", pkt[:IPV4_HEADER_LEN])
        iph_length = (iph[0] & 0xF) * 4

        if len(pkt) < iph_length + 8:
            raise ValueError(
                "Packet shorter than IP header + ICMP header (IHL + 8 bytes)."
            )

        return ReceivedPacket(
            src_addr=socket.inet_ntoa(iph[8]),
            icmp_packet=self._parse_icmp(pkt[iph_length:]),
            received_at=received_at,
        )

    def _parse_ipv6(self, pkt: bytes, src_addr: str, received_at: float) -> ReceivedPacket:
        # ICMPv6 raw sockets deliver the message without the IPv6 header.
        if len(pkt) < 8:
            raise ValueError("Packet shorter than ICMPv6 header (8 bytes).")
        return ReceivedPacket(
            src_addr=src_addr,
            icmp_packet=self._parse_icmp(pkt),
            received_at=received_at,
        )

    @staticmethod
    def _parse_icmp(message: bytes) -> IcmpPacket:
        icmph = struct.unpack("!BBHHH", message[:8])
        return IcmpPacket(
            type=icmph[0],
            code=icmph[1],
            checksum=icmph[2],
            id=icmph[3],
            sequence=icmph[4],
            data=message[8:],
        )

    def _icmp_checksum(self, data: bytes) -> int:
        if len(data) % 2:
            data += b"\x00"
        total = sum(struct.unpack("!%dH" % (len(data) // 2), data))
        total = (total >> 16) + (total & 0xFFFF)
        total += total >> 16
        return (~total) & 0xFFFF

    def _build_icmp_packet(
        self, sequence: int, family: int
    ) -> tuple[bytes, IcmpPacket, float]:
        msg_type = ICMPV6_ECHO_REQUEST if family == socket.AF_INET6 else ICMP_ECHO_REQUEST
        timestamp = time.time()
        data = struct.pack("d", timestamp)
        checksum = 0
        if family == socket.AF_INET:
            # The kernel fills in the ICMPv6 checksum.
            header = struct.pack("!BBHHH", msg_type, 0, 0, self.identifier, sequence)
            checksum = self._icmp_checksum(header + data)
        header = struct.pack(
            "!BBHHH", msg_type, 0, checksum, self.identifier, sequence
        )
        icmp_pkt = IcmpPacket(
            type=msg_type,
            code=0,
            checksum=checksum,
            id=self.identifier,
            sequence=sequence,
            data=data,
        )
        return header + data, icmp_pkt, timestamp

    def _matches_probe(self, sequence: int, icmp_pkt: IcmpPacket, family: int) -> bool:
        if family == socket.AF_INET6:
            reply, errors, quoted = (
                ICMPV6_ECHO_REPLY,
                {ICMPV6_TIME_EXCEEDED, ICMPV6_DEST_UNREACHABLE},
                IPV6_HEADER_LEN,
            )
        else:
            reply, errors, quoted = (
                ICMP_ECHO_REPLY,
                {ICMP_TIME_EXCEEDED, ICMP_DEST_UNREACHABLE},
                IPV4_HEADER_LEN,
            )

        if icmp_pkt.type == reply:
            return icmp_pkt.id == self.identifier and icmp_pkt.sequence == sequence

        if icmp_pkt.type in errors and len(icmp_pkt.data) >= quoted + 8:
            _, _, _, inner_id, inner_seq = struct.unpack(
                "!BBHHH", icmp_pkt.data[quoted : quoted + 8]
            )
            return inner_id == self.identifier and inner_seq == sequence

        return False

    def _send_echo_request(self, dest_addr: str, ttl: int) -> SentPacket:
        family = self._family(dest_addr)
        self.seq_number = (self.seq_number + 1) & 0xFFFF
        packet_bytes, icmp_pkt, timestamp = self._build_icmp_packet(
            self.seq_number, family
        )
        sock = self.sock(family)
        if family == socket.AF_INET6:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl)
            sock.sendto(packet_bytes, (dest_addr, 0, 0, 0))
        else:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
            sock.sendto(packet_bytes, (dest_addr, 1))
        return SentPacket(
            icmp_packet=icmp_pkt,
            timestamp=timestamp,
            destination=dest_addr,
        )

    def _receive_probe(
        self, sent: SentPacket, timeout: float
    ) -> Optional[ReceivedPacket]:
        family = self._family(sent.destination)
        sock = self.sock(family)
        deadline = time.time() + timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                return None

            ready = select.select([sock], [], [], remaining)
            if not ready[0]:
                return None

            recv_time = time.time()
            pkt, peer = sock.recvfrom(1024)
            try:
                if family == socket.AF_INET6:
                    received = self._parse_ipv6(pkt, peer[0], recv_time)
                else:
                    received = self._parse_ipv4(pkt, recv_time)
            except (ValueError, struct.error) as err:
                logger.debug("Discarding malformed packet: %s", err)
                continue

            if self._matches_probe(sent.icmp_packet.sequence, received.icmp_packet, family):
                return received

    def _classify(self, sent: SentPacket, received: Optional[ReceivedPacket]) -> Outcome:
        if received is None:
            return Silent()
        if self._family(sent.destination) == socket.AF_INET6:
            reply, exceeded = ICMPV6_ECHO_REPLY, ICMPV6_TIME_EXCEEDED
        else:
            reply, exceeded = ICMP_ECHO_REPLY, ICMP_TIME_EXCEEDED
        rtt = (received.received_at - sent.timestamp) * 1000
        msg_type = received.icmp_packet.type
        if msg_type == reply:
            return Arrived(received.src_addr, rtt)
        if msg_type == exceeded:
            return Relayed(received.src_addr, rtt)
        return Silent(f"dest unreachable (code {received.icmp_packet.code})")

    def echo(self, address: str, ttl: int, timeout_ms: float) -> Outcome:
        """Send one echo request to ``address`` and wait up to ``timeout_ms``."""
        try:
            sent = self._send_echo_request(address, ttl)
            received = self._receive_probe(sent, timeout_ms / 1000)
        except RawSocketPermissionError:
            raise
        except OSError as exc:
            logger.debug("Probe error ttl=%d: %s", ttl, exc)
            return Silent(str(exc))
        return self._classify(sent, received)

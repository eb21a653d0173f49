"""Packet transport between the simulation and an autopilot.

The autopilot is reached over UDP or, when configured, over a TCP
connection that the link accepts. In HIL mode two more UDP sockets relay
traffic to and from a ground control station and an SDK client.
"""

from __future__ import annotations

import errno
import logging
import select
import socket
import struct
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

DEFAULT_MAVLINK_UDP_PORT = 14560
DEFAULT_MAVLINK_TCP_PORT = 4560
DEFAULT_QGC_UDP_PORT = 14550
DEFAULT_SDK_UDP_PORT = 14540

ANY_ADDRESS = "INADDR_ANY"

# Parser channels, one per source of incoming bytes.
SIMULATOR_CHANNEL = 0
QGC_CHANNEL = 1
SDK_CHANNEL = 2

_RECV_SIZE = 65535
_LOCKSTEP_TIMEOUT = 1.0  # s

_log = logging.getLogger(__name__)

Address = Tuple[str, int]
Parser = Callable[[int, bytes], Iterable[bytes]]
Handler = Callable[[bytes], bool]


def resolve_address(addr: str) -> str:
    """Dotted IPv4 address for ``addr``; ``INADDR_ANY`` gives ``0.0.0.0``.

    Raises ValueError for a string that is not an IPv4 address, and for
    ``255.255.255.255``, which cannot be told apart from an invalid one.
    """
    if addr == ANY_ADDRESS:
        return "0.0.0.0"
    try:
        packed = socket.inet_aton(addr)
    except OSError as exc:
        raise ValueError(f"invalid address: {addr!r}") from exc
    if packed == b"\xff\xff\xff\xff":
        raise ValueError(f"invalid address: {addr!r}")
    return socket.inet_ntoa(packed)


@dataclass
class LinkConfig:
    """Addresses, ports and modes of a simulator link."""

    mavlink_addr: str = ANY_ADDRESS
    mavlink_udp_port: int = DEFAULT_MAVLINK_UDP_PORT
    mavlink_tcp_port: int = DEFAULT_MAVLINK_TCP_PORT
    use_tcp: bool = False
    hil_mode: bool = False
    enable_lockstep: bool = False
    qgc_addr: str = ANY_ADDRESS
    qgc_udp_port: int = DEFAULT_QGC_UDP_PORT
    sdk_addr: str = ANY_ADDRESS
    sdk_udp_port: int = DEFAULT_SDK_UDP_PORT


def _whole_datagram(channel: int, data: bytes) -> Iterable[bytes]:
    return (data,)


def _ignore(packet: bytes) -> bool:
    return False


def _udp_socket(local: Address) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setblocking(False)
        sock.bind(local)
    except OSError:
        sock.close()
        raise
    return sock


def _tcp_listener(local: Address) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        # Reuse lets a restarted simulation bind while the old socket lingers.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        sock.setblocking(False)
        sock.bind(local)
        sock.listen(0)
    except OSError:
        sock.close()
        raise
    return sock


class SimulatorLink:
    """Sockets to the autopilot and, in HIL mode, to ground stations.

    ``parse(channel, data)`` turns received bytes into complete packets and
    may keep state per channel. ``handle(packet)`` processes one packet from
    the autopilot and returns True when it carried actuator controls.
    """

    def __init__(
        self,
        config: Optional[LinkConfig] = None,
        parse: Optional[Parser] = None,
        handle: Optional[Handler] = None,
    ) -> None:
        self.config = config if config is not None else LinkConfig()
        self._parse = parse if parse is not None else _whole_datagram
        self._handle = handle if handle is not None else _ignore
        self._listen: Optional[socket.socket] = None
        self._conn: Optional[socket.socket] = None
        self._qgc: Optional[socket.socket] = None
        self._sdk: Optional[socket.socket] = None
        self._remote: Optional[Address] = None
        self._qgc_remote: Optional[Address] = None
        self._sdk_remote: Optional[Address] = None
        self.connection_closed = False
        self.received_first_actuator = False
        self._sigint = False

    @property
    def local_address(self) -> Optional[Address]:
        """Local address of the listening or simulator socket."""
        sock = self._listen if self._listen is not None else self._conn
        return sock.getsockname() if sock is not None else None

    @property
    def qgc_address(self) -> Optional[Address]:
        """Local address of the ground control station socket."""
        return self._qgc.getsockname() if self._qgc is not None else None

    @property
    def sdk_address(self) -> Optional[Address]:
        """Local address of the SDK socket."""
        return self._sdk.getsockname() if self._sdk is not None else None

    @property
    def connected(self) -> bool:
        """Whether a socket to the autopilot is open."""
        return self._conn is not None

    def open(self) -> None:
        """Create and bind all sockets. Raises ValueError or OSError on failure."""
        cfg = self.config
        mavlink_addr = resolve_address(cfg.mavlink_addr)
        qgc_addr = resolve_address(cfg.qgc_addr)
        sdk_addr = resolve_address(cfg.sdk_addr)
        try:
            if cfg.hil_mode:
                self._qgc = _udp_socket((qgc_addr, 0))
                self._qgc_remote = (qgc_addr, cfg.qgc_udp_port)
                self._sdk = _udp_socket((sdk_addr, 0))
                self._sdk_remote = (sdk_addr, cfg.sdk_udp_port)

            if cfg.use_tcp:
                self._listen = _tcp_listener((mavlink_addr, cfg.mavlink_tcp_port))
            elif not cfg.hil_mode:
                # Towards SITL the autopilot listens on a known port.
                self._remote = (mavlink_addr, cfg.mavlink_udp_port)
                self._conn = _udp_socket(("0.0.0.0", 0))
            else:
                # Towards HITL the vehicle talks to a port we listen on.
                self._remote = None
                self._conn = _udp_socket((mavlink_addr, cfg.mavlink_udp_port))
        except OSError:
            self._close_all()
            raise

    def _accept(self) -> None:
        if self._conn is not None or self._listen is None:
            return
        try:
            conn, addr = self._listen.accept()
        except BlockingIOError:
            return
        except OSError as exc:
            _log.error("accept error: %s", exc)
            return
        conn.setblocking(False)
        self._conn = conn
        self._remote = addr

    def _receive(self, sock: socket.socket) -> bool:
        """Read from the autopilot socket; True when actuator controls arrived."""
        try:
            data, addr = sock.recvfrom(_RECV_SIZE)
        except BlockingIOError:
            return False
        except OSError as exc:
            _log.error("recvfrom error: %s", exc)
            return False

        if self.config.use_tcp:
            if not data:
                _log.error("Connection closed by client.")
                self.connection_closed = True
                return False
        elif addr is not None:
            self._remote = addr

        received = False
        for packet in self._parse(SIMULATOR_CHANNEL, data):
            if self._handle(packet):
                received = True
                self.received_first_actuator = True
        return received

    def poll(self, wait_for_actuator: Optional[bool] = None) -> bool:
        """Read and handle everything waiting from the autopilot.

        With ``wait_for_actuator`` the call blocks up to a second at a time
        until actuator controls arrive. Left as None, it waits only in
        lockstep mode after the first actuator message. Returns whether
        actuator controls were received.
        """
        if self._sigint:
            return False
        if wait_for_actuator is None:
            wait_for_actuator = self.received_first_actuator and self.config.enable_lockstep
        timeout = _LOCKSTEP_TIMEOUT if wait_for_actuator else 0.0

        received = False
        while not (self.connection_closed or self._sigint or received):
            watched = [s for s in (self._listen, self._conn) if s is not None]
            if not watched:
                return received
            try:
                ready, _, _ = select.select(watched, [], [], timeout)
            except (OSError, ValueError) as exc:
                _log.error("poll error: %s", exc)
                return received
            if not ready:
                if wait_for_actuator:
                    _log.error("poll timeout")
                return received
            for sock in ready:
                if sock is self._listen:
                    self._accept()
                elif self._receive(sock):
                    received = True
        return received

    def poll_ground_stations(self) -> int:
        """Relay waiting ground station packets to the autopilot.

        Returns the number of packets relayed.
        """
        sources = [
            (sock, channel)
            for sock, channel in ((self._qgc, QGC_CHANNEL), (self._sdk, SDK_CHANNEL))
            if sock is not None
        ]
        if not sources:
            return 0
        try:
            ready, _, _ = select.select([s for s, _ in sources], [], [], 0.0)
        except (OSError, ValueError) as exc:
            _log.error("poll error: %s", exc)
            return 0

        relayed = 0
        for sock, channel in sources:
            if sock not in ready:
                continue
            try:
                data, addr = sock.recvfrom(_RECV_SIZE)
            except OSError:
                continue
            if not data:
                continue
            if channel == QGC_CHANNEL:
                self._qgc_remote = addr
            else:
                self._sdk_remote = addr
            for packet in self._parse(channel, data):
                self.send(packet)
                relayed += 1
        return relayed

    def send(self, packet: bytes) -> bool:
        """Send a packet to the autopilot; returns whether it went out."""
        if self._sigint or self.connection_closed or self._conn is None:
            return False
        try:
            if self.config.use_tcp:
                sent = self._conn.send(packet)
            else:
                if self._remote is None:
                    return False
                sent = self._conn.sendto(packet, self._remote)
        except OSError as exc:
            if self.received_first_actuator:
                _log.error("Failed sending mavlink message: %s", exc)
                if exc.errno in (errno.ECONNRESET, errno.EPIPE) and self.config.use_tcp:
                    _log.error("Closing connection.")
                    self.connection_closed = True
            return False
        return sent > 0

    def forward(self, packet: bytes) -> int:
        """Send a packet to the ground station and the SDK client.

        Returns the number of destinations it reached.
        """
        if self._sigint:
            return 0
        reached = 0
        for name, sock, remote in (
            ("QGC", self._qgc, self._qgc_remote),
            ("SDK", self._sdk, self._sdk_remote),
        ):
            if sock is None or remote is None:
                continue
            try:
                if sock.sendto(packet, remote) > 0:
                    reached += 1
            except OSError as exc:
                _log.error("Failed sending mavlink message to %s: %s", name, exc)
        return reached

    def close(self) -> None:
        """Close the socket to the autopilot."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self.received_first_actuator = False

    def _close_all(self) -> None:
        self.close()
        for name in ("_listen", "_qgc", "_sdk"):
            sock = getattr(self, name)
            if sock is not None:
                sock.close()
                setattr(self, name, None)

    def on_sigint(self) -> None:
        """Stop all traffic after an interrupt."""
        self._sigint = True
        self.close()

    def __enter__(self) -> "SimulatorLink":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._close_all()
"""Find devices on the LAN.

A search request is multicast to the well-known SSDP-style group, and
the devices answer with an HTTP style header block describing
themselves. Answers are collected until a termination policy is
satisfied.
"""

import asyncio
import logging
import socket
import time
from typing import Dict, Iterable, List, Optional, Tuple

from .device import YeelightDevice, parse_headers

MULTICAST_ADDRESS = "239.255.255.250"
DISCOVERY_PORT = 1982
DEFAULT_POLL_INTERVAL = 0.25

SEARCH_REQUEST = (
    "M-SEARCH * HTTP/1.1\r\n"
    f"HOST: {MULTICAST_ADDRESS}:{DISCOVERY_PORT}\r\n"
    'MAN: "ssdp:discover"\r\n'
    "ST: wifi_bulb\r\n"
)

_LOGGER = logging.getLogger(__name__)


class TerminationPolicy:
    """Decides when a discovery session has found enough"""

    def is_satisfied(self, found: Dict[str, YeelightDevice], elapsed: float) -> bool:
        raise NotImplementedError


class Duration(TerminationPolicy):
    """Run for a fixed number of seconds and return whatever was found"""

    def __init__(self, seconds: float):
        self.seconds = seconds

    def is_satisfied(self, found, elapsed):
        return elapsed >= self.seconds

    def __repr__(self):
        return f"Duration({self.seconds})"


class MinimumCount(TerminationPolicy):
    """Run until count distinct devices were found"""

    def __init__(self, count: int):
        self.count = count

    def is_satisfied(self, found, elapsed):
        return len(found) >= self.count

    def __repr__(self):
        return f"MinimumCount({self.count})"


class TargetIds(TerminationPolicy):
    """Run until every one of the given device ids was found"""

    def __init__(self, device_ids: Iterable[str]):
        self.device_ids = frozenset(device_ids)

    def is_satisfied(self, found, elapsed):
        return self.device_ids.issubset(found.keys())

    def __repr__(self):
        return f"TargetIds({sorted(self.device_ids)})"


class TargetId(TargetIds):
    """Run until the device with this id was found"""

    def __init__(self, device_id: str):
        super().__init__([device_id])


class YeelightDiscoveryListener(asyncio.DatagramProtocol):
    """Decodes responses to the search request and queues the
    devices they describe. Anything that doesn't describe a device
    is ignored"""

    transport: Optional[asyncio.DatagramTransport] = None

    def __init__(self, queue: "asyncio.Queue[YeelightDevice]"):
        self.queue = queue

    def connection_made(self, transport):
        self.transport = transport

    def connection_lost(self, exc):
        self.transport = None

    def error_received(self, exc):
        _LOGGER.debug("discovery socket error", exc_info=exc)

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        try:
            message = data.rstrip(b"\x00").decode("utf-8")
        except UnicodeDecodeError:
            _LOGGER.debug("ignoring undecodable datagram from %s", addr)
            return

        device = YeelightDevice.from_headers(parse_headers(message))
        if device is None:
            _LOGGER.debug("ignoring datagram from %s: %r", addr, message)
            return
        self.queue.put_nowait(device)


def _drain(
    queue: "asyncio.Queue[YeelightDevice]",
    found: Dict[str, YeelightDevice],
    policy: TerminationPolicy,
    started: float,
) -> bool:
    """Move queued devices into found, first announcement wins.
    Returns True as soon as the policy is satisfied"""
    while not queue.empty():
        device = queue.get_nowait()
        if device.device_id in found:
            continue
        _LOGGER.info(
            "discovered %s (%s) at %s", device.device_id, device.model, device.address
        )
        found[device.device_id] = device
        if policy.is_satisfied(found, time.monotonic() - started):
            return True
    return policy.is_satisfied(found, time.monotonic() - started)


async def discover(
    policy: TerminationPolicy,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    interface: str = "0.0.0.0",
    multicast_address: str = MULTICAST_ADDRESS,
    multicast_port: int = DISCOVERY_PORT,
) -> List[YeelightDevice]:
    """Multicast a search request and collect the devices that answer
    until policy is satisfied. Devices are returned in the order they
    were first seen, one per device id.

    If the search request can't be sent, an empty list is returned.
    The listening socket is closed when this returns or is cancelled.
    """
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[YeelightDevice]" = asyncio.Queue()

    # The socket is bound before the request goes out, so early answers
    # wait in its receive buffer until the listener is attached
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if interface != "0.0.0.0":
            sock.setsockopt(
                socket.SOL_IP, socket.IP_MULTICAST_IF, socket.inet_aton(interface)
            )
        sock.bind((interface, 0))
        sock.sendto(SEARCH_REQUEST.encode("ascii"), (multicast_address, multicast_port))
        sock.setblocking(False)
        transport, _protocol = await loop.create_datagram_endpoint(
            lambda: YeelightDiscoveryListener(queue), sock=sock
        )
    except OSError as exc:
        sock.close()
        _LOGGER.warning(
            "unable to send search request from %s", interface, exc_info=exc
        )
        return []

    _LOGGER.debug("sent search request, waiting for %r", policy)
    try:
        started = time.monotonic()
        found: Dict[str, YeelightDevice] = {}
        while not _drain(queue, found, policy, started):
            await asyncio.sleep(poll_interval)
        return list(found.values())
    finally:
        transport.close()

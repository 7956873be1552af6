import asyncio
import logging
import random
from typing import Any, Callable, List, Optional, Sequence

from . import commands
from .color import HSV, RGB
from .commands import ColorFlow, Command, CronEntry, Scene, Transition
from .device import YeelightDevice, split_address
from .exceptions import (
    ErrorResponse,
    SynchronizationError,
    TransportError,
    UnsupportedMethodError,
)
from .models import AdjustableProp, AdjustAction, CronType, Method, Power, PowerMode
from .protocol import (
    INT16_MAX,
    INT16_MIN,
    MethodError,
    Param,
    decode_response,
    encode_request,
)

# Large enough for any single response; the device never splits one
READ_BUFFER_SIZE = 2048
DEFAULT_CONNECT_TIMEOUT = 10

_LOGGER = logging.getLogger(__name__)


def random_request_id() -> int:
    """The default source of correlation ids"""
    return random.randint(INT16_MIN, INT16_MAX)


class Transport:
    """A bidirectional byte stream to one device"""

    async def write(self, data: bytes):
        raise NotImplementedError

    async def read(self, size: int) -> bytes:
        raise NotImplementedError

    async def close(self):
        pass


class StreamTransport(Transport):
    """Transport over an asyncio TCP stream"""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    @staticmethod
    async def open(host: str, port: int, timeout: float = DEFAULT_CONNECT_TIMEOUT):
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
        return StreamTransport(reader, writer)

    async def write(self, data: bytes):
        self.writer.write(data)
        await self.writer.drain()

    async def read(self, size: int) -> bytes:
        return await self.reader.read(size)

    async def close(self):
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as exc:
            _LOGGER.debug("error while closing connection", exc_info=exc)


class YeelightConnection:
    """Issues calls to a single device over a single transport.

    Only one call is in flight at a time; concurrent callers wait for
    the lock. Responses are matched to requests by correlation id.
    Failures are raised as YeelightError subclasses and never retried
    here; that is left to the caller.
    """

    device: YeelightDevice
    transport: Transport
    id_source: Callable[[], int]
    read_timeout: Optional[float] = None

    def __init__(
        self,
        device: YeelightDevice,
        transport: Transport,
        id_source: Optional[Callable[[], int]] = None,
        read_timeout: Optional[float] = None,
    ):
        self.device = device
        self.transport = transport
        self.id_source = id_source or random_request_id
        self.read_timeout = read_timeout
        self._lock = asyncio.Lock()

    @staticmethod
    async def open(
        device: YeelightDevice,
        read_timeout: Optional[float] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        id_source: Optional[Callable[[], int]] = None,
    ) -> "YeelightConnection":
        """Connect to the device at its announced address"""
        try:
            host, port = split_address(device.address)
            transport = await StreamTransport.open(host, port, timeout=connect_timeout)
        except (OSError, ValueError, asyncio.TimeoutError) as exc:
            raise TransportError(f"unable to connect to {device.address}") from exc
        _LOGGER.debug("connected to %s at %s", device.device_id, device.address)
        return YeelightConnection(
            device, transport, id_source=id_source, read_timeout=read_timeout
        )

    def set_read_timeout(self, timeout: Optional[float]):
        """Bound each read by timeout seconds. None waits forever"""
        self.read_timeout = timeout

    async def close(self):
        await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *error_info):
        await self.close()

    async def _read(self) -> bytes:
        if self.read_timeout is None:
            return await self.transport.read(READ_BUFFER_SIZE)
        return await asyncio.wait_for(
            self.transport.read(READ_BUFFER_SIZE), timeout=self.read_timeout
        )

    async def call(self, method: Method, params: Sequence[Param]) -> List[Any]:
        """Perform one request/response exchange and return the raw
        result list"""
        if method not in self.device.support:
            raise UnsupportedMethodError(method)

        async with self._lock:
            request_id = self.id_source()
            message = encode_request(request_id, method, params)
            _LOGGER.debug("-> %s: %s", self.device.device_id, message)

            try:
                await self.transport.write(message)
            except OSError as exc:
                raise TransportError(f"write to {self.device.address} failed") from exc

            try:
                data = await self._read()
            except asyncio.TimeoutError as exc:
                raise TransportError(
                    f"no response from {self.device.address} "
                    f"within {self.read_timeout}s"
                ) from exc
            except OSError as exc:
                raise TransportError(f"read from {self.device.address} failed") from exc
            if not data:
                raise TransportError(f"{self.device.address} closed the connection")
            _LOGGER.debug("<- %s: %s", self.device.device_id, data)

        response = decode_response(data)
        if isinstance(response, MethodError):
            raise ErrorResponse(response.code, response.message)
        if response.id != request_id:
            _LOGGER.warning(
                "%s: response id %d does not match request id %d",
                self.device.device_id,
                response.id,
                request_id,
            )
            raise SynchronizationError(request_id, response.id)
        return response.result

    async def send(self, command: Command) -> Any:
        """Call the command's method and parse the result"""
        result = await self.call(command.method, command.params)
        return command.parse_result(result)

    async def get_prop(self, props: Sequence[str]) -> List[str]:
        """Returns the values of the named properties, in order"""
        return await self.send(commands.get_prop(props))

    async def set_ct_abx(
        self, ct_value: int, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(commands.set_ct_abx(ct_value, transition))

    async def set_rgb(self, rgb: RGB, transition: Transition = Transition()) -> List[str]:
        return await self.send(commands.set_rgb(rgb, transition))

    async def set_hsv(self, hsv: HSV, transition: Transition = Transition()) -> List[str]:
        return await self.send(commands.set_hsv(hsv, transition))

    async def set_bright(
        self, brightness: int, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(commands.set_bright(brightness, transition))

    async def set_power(
        self,
        power: Power,
        transition: Transition = Transition(),
        mode: Optional[PowerMode] = None,
    ) -> List[str]:
        return await self.send(commands.set_power(power, transition, mode))

    async def toggle(self) -> List[str]:
        return await self.send(commands.toggle())

    async def set_default(self) -> List[str]:
        return await self.send(commands.set_default())

    async def start_cf(self, flow: ColorFlow) -> List[str]:
        return await self.send(commands.start_cf(flow))

    async def stop_cf(self) -> List[str]:
        return await self.send(commands.stop_cf())

    async def set_scene(self, scene: Scene) -> List[str]:
        return await self.send(commands.set_scene(scene))

    async def cron_add(
        self, minutes: int, cron_type: CronType = CronType.POWER_OFF
    ) -> List[str]:
        """Start a timer that turns the device off after minutes"""
        return await self.send(commands.cron_add(minutes, cron_type))

    async def cron_get(self, cron_type: CronType = CronType.POWER_OFF) -> List[CronEntry]:
        return await self.send(commands.cron_get(cron_type))

    async def cron_del(self, cron_type: CronType = CronType.POWER_OFF) -> List[str]:
        return await self.send(commands.cron_del(cron_type))

    async def set_adjust(self, action: AdjustAction, prop: AdjustableProp) -> List[str]:
        return await self.send(commands.set_adjust(action, prop))

    async def set_music(self, host: str, port: int) -> List[str]:
        """Ask the device to open a music mode connection to host:port"""
        return await self.send(commands.set_music(host, port))

    async def stop_music(self) -> List[str]:
        return await self.send(commands.stop_music())

    async def set_name(self, name: str) -> List[str]:
        return await self.send(commands.set_name(name))

    async def bg_set_ct_abx(
        self, ct_value: int, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(commands.set_ct_abx(ct_value, transition, background=True))

    async def bg_set_rgb(
        self, rgb: RGB, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(commands.set_rgb(rgb, transition, background=True))

    async def bg_set_hsv(
        self, hsv: HSV, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(commands.set_hsv(hsv, transition, background=True))

    async def bg_set_bright(
        self, brightness: int, transition: Transition = Transition()
    ) -> List[str]:
        return await self.send(
            commands.set_bright(brightness, transition, background=True)
        )

    async def bg_set_power(
        self,
        power: Power,
        transition: Transition = Transition(),
        mode: Optional[PowerMode] = None,
    ) -> List[str]:
        return await self.send(
            commands.set_power(power, transition, mode, background=True)
        )

    async def bg_toggle(self) -> List[str]:
        return await self.send(commands.toggle(background=True))

    async def bg_set_default(self) -> List[str]:
        return await self.send(commands.set_default(background=True))

    async def bg_start_cf(self, flow: ColorFlow) -> List[str]:
        return await self.send(commands.start_cf(flow, background=True))

    async def bg_stop_cf(self) -> List[str]:
        return await self.send(commands.stop_cf(background=True))

    async def bg_set_scene(self, scene: Scene) -> List[str]:
        return await self.send(commands.set_scene(scene, background=True))

    async def bg_set_adjust(
        self, action: AdjustAction, prop: AdjustableProp
    ) -> List[str]:
        return await self.send(commands.set_adjust(action, prop, background=True))

    async def dev_toggle(self) -> List[str]:
        return await self.send(commands.dev_toggle())

# pylint: disable=redefined-outer-name
# pylint: disable=missing-class-docstring
# pylint: disable=missing-function-docstring

import asyncio
from dataclasses import replace
import itertools

import pytest

from yeelight_lan import (
    RGB,
    BadRequestError,
    ColorFlow,
    ColorTemperatureMode,
    CronEntry,
    CronType,
    CtFlowSegment,
    ErrorResponse,
    FlowStep,
    Method,
    ParseError,
    Power,
    SynchronizationError,
    Transition,
    Transport,
    TransportError,
    UnsupportedMethodError,
    YeelightConnection,
    YeelightDevice,
)
from yeelight_lan.connection import READ_BUFFER_SIZE
from yeelight_lan.protocol import decode_request

TEST_OK_VAL = '{"id":1, "result":["ok"]}'


class MockTransport(Transport):
    """Records what was written and answers each read with the next
    queued response, NUL padded like a fixed size read buffer"""

    def __init__(self, *responses, read_delay=0.0):
        self.responses = list(responses)
        self.written = []
        self.read_delay = read_delay
        self.closed = False

    async def write(self, data: bytes):
        self.written.append(data)

    async def read(self, size: int) -> bytes:
        assert size == READ_BUFFER_SIZE
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        data = response.encode("utf-8")
        return data + b"\x00" * (size - len(data))

    async def close(self):
        self.closed = True


class NoWriteTransport(Transport):
    async def write(self, data: bytes):
        pytest.fail(f"unexpected write: {data!r}")

    async def read(self, size: int) -> bytes:
        pytest.fail("unexpected read")


class FailingWriteTransport(Transport):
    async def write(self, data: bytes):
        raise ConnectionResetError("reset by peer")

    async def read(self, size: int) -> bytes:
        pytest.fail("unexpected read")


def make_device(*methods: Method) -> YeelightDevice:
    return YeelightDevice(
        device_id="0x000000000015243f",
        model="color",
        firmware_version="18",
        support=frozenset(methods),
        power=Power.OFF,
        brightness=0,
        color_mode=ColorTemperatureMode(2700),
        name="",
        address="127.0.0.1:55443",
    )


def one_id():
    return 1


def conn_with_method(method, transport, id_source=one_id, **kwargs):
    return YeelightConnection(
        make_device(method), transport, id_source=id_source, **kwargs
    )


def written_line(transport: MockTransport, index=0):
    return transport.written[index].decode("utf-8")


@pytest.mark.asyncio
async def test_toggle():
    transport = MockTransport('{"id":1,"result":["ok"]}')
    conn = conn_with_method(Method.TOGGLE, transport)
    assert await conn.toggle() == ["ok"]
    assert transport.written == [b'{"id":1,"method":"toggle","params":[]}\r\n']


@pytest.mark.asyncio
async def test_get_prop():
    transport = MockTransport('{"id":1, "result":["on", "", "100"]}')
    conn = conn_with_method(Method.GET_PROP, transport)
    assert await conn.get_prop(["power", "not_exist", "bright"]) == ["on", "", "100"]
    assert written_line(transport) == (
        '{"id":1,"method":"get_prop","params":["power", "not_exist", "bright"]}\r\n'
    )


@pytest.mark.asyncio
async def test_set_ct_abx():
    transport = MockTransport(TEST_OK_VAL)
    conn = conn_with_method(Method.SET_CT_ABX, transport)
    assert await conn.set_ct_abx(3500, Transition.smooth(500)) == ["ok"]
    assert written_line(transport) == (
        '{"id":1,"method":"set_ct_abx","params":[3500, "smooth", 500]}\r\n'
    )


@pytest.mark.asyncio
async def test_bad_request_writes_nothing():
    conn = conn_with_method(Method.SET_CT_ABX, NoWriteTransport())
    with pytest.raises(BadRequestError):
        await conn.set_ct_abx(100)


@pytest.mark.asyncio
async def test_unsupported_method_writes_nothing():
    conn = conn_with_method(Method.SET_RGB, NoWriteTransport())
    with pytest.raises(UnsupportedMethodError) as info:
        await conn.toggle()
    assert info.value.method == Method.TOGGLE
    with pytest.raises(UnsupportedMethodError):
        await conn.call(Method.SET_NAME, ["lamp"])


@pytest.mark.asyncio
async def test_mismatched_id():
    transport = MockTransport('{"id":2,"result":["ok"]}')
    conn = conn_with_method(Method.TOGGLE, transport)
    with pytest.raises(SynchronizationError) as info:
        await conn.toggle()
    assert info.value.expected_id == 1
    assert info.value.received_id == 2


@pytest.mark.asyncio
async def test_error_response():
    transport = MockTransport(
        '{"id":1,"error":{"code":-5000,"message":"general error"}}'
    )
    conn = conn_with_method(Method.TOGGLE, transport)
    with pytest.raises(ErrorResponse) as info:
        await conn.toggle()
    assert info.value.code == -5000
    assert info.value.message == "general error"


@pytest.mark.asyncio
async def test_parse_error():
    conn = conn_with_method(Method.TOGGLE, MockTransport("garbage"))
    with pytest.raises(ParseError):
        await conn.toggle()


@pytest.mark.asyncio
async def test_wrong_result_type_is_parse_error():
    conn = conn_with_method(Method.TOGGLE, MockTransport('{"id":1,"result":[1]}'))
    with pytest.raises(ParseError):
        await conn.toggle()


@pytest.mark.asyncio
async def test_write_failure():
    conn = conn_with_method(Method.TOGGLE, FailingWriteTransport())
    with pytest.raises(TransportError) as info:
        await conn.toggle()
    assert isinstance(info.value.__cause__, ConnectionResetError)


@pytest.mark.asyncio
async def test_read_failure_releases_lock():
    transport = MockTransport(OSError("broken"), TEST_OK_VAL)
    conn = conn_with_method(Method.TOGGLE, transport)
    with pytest.raises(TransportError):
        await conn.toggle()
    assert await conn.toggle() == ["ok"]


@pytest.mark.asyncio
async def test_connection_closed():
    class ClosedTransport(MockTransport):
        async def read(self, size: int) -> bytes:
            return b""

    conn = conn_with_method(Method.TOGGLE, ClosedTransport())
    with pytest.raises(TransportError):
        await conn.toggle()


@pytest.mark.asyncio
async def test_read_timeout():
    transport = MockTransport(TEST_OK_VAL, read_delay=5)
    conn = conn_with_method(Method.TOGGLE, transport, read_timeout=0.05)
    with pytest.raises(TransportError) as info:
        await conn.toggle()
    assert isinstance(info.value.__cause__, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_fresh_id_per_call():
    ids = itertools.count(10)
    transport = MockTransport('{"id":10,"result":["ok"]}', '{"id":11,"result":["ok"]}')
    conn = conn_with_method(Method.TOGGLE, transport, id_source=lambda: next(ids))
    await conn.toggle()
    await conn.toggle()
    assert [decode_request(line)[0] for line in transport.written] == [10, 11]


@pytest.mark.asyncio
async def test_default_ids_are_int16():
    class EchoTransport(Transport):
        last_id = None

        async def write(self, data: bytes):
            self.last_id = decode_request(data)[0]

        async def read(self, size: int) -> bytes:
            return f'{{"id":{self.last_id},"result":["ok"]}}'.encode()

    transport = EchoTransport()
    conn = YeelightConnection(make_device(Method.TOGGLE), transport)
    for _ in range(20):
        assert await conn.toggle() == ["ok"]
        assert -32768 <= transport.last_id <= 32767


@pytest.mark.asyncio
async def test_concurrent_calls_are_serialized():
    class InterleaveCheckingTransport(Transport):
        def __init__(self):
            self.in_flight = False
            self.pending_id = None
            self.calls = 0

        async def write(self, data: bytes):
            assert not self.in_flight
            self.in_flight = True
            self.pending_id = decode_request(data)[0]

        async def read(self, size: int) -> bytes:
            await asyncio.sleep(0.01)
            self.in_flight = False
            self.calls += 1
            return f'{{"id":{self.pending_id},"result":["ok"]}}'.encode()

    ids = itertools.count(1)
    transport = InterleaveCheckingTransport()
    conn = conn_with_method(Method.TOGGLE, transport, id_source=lambda: next(ids))
    results = await asyncio.gather(*[conn.toggle() for _ in range(5)])
    assert results == [["ok"]] * 5
    assert transport.calls == 5


@pytest.mark.asyncio
async def test_start_cf():
    transport = MockTransport(TEST_OK_VAL)
    conn = conn_with_method(Method.START_CF, transport)
    flow = ColorFlow([FlowStep(1000, CtFlowSegment(2700, 100))], count=1)
    assert await conn.start_cf(flow) == ["ok"]
    assert written_line(transport) == (
        '{"id":1,"method":"start_cf","params":[1, 0, "1000,2,2700,100"]}\r\n'
    )


@pytest.mark.asyncio
async def test_cron_get():
    transport = MockTransport('{"id":1,"result":[{"type": 0, "delay": 15, "mix": 0}]}')
    conn = conn_with_method(Method.CRON_GET, transport)
    assert await conn.cron_get(CronType.POWER_OFF) == [
        CronEntry(CronType.POWER_OFF, delay_minutes=15, mix=0)
    ]
    assert written_line(transport) == '{"id":1,"method":"cron_get","params":[0]}\r\n'


@pytest.mark.asyncio
async def test_set_music():
    transport = MockTransport(TEST_OK_VAL)
    conn = conn_with_method(Method.SET_MUSIC, transport)
    assert await conn.set_music("192.168.0.2", 54321) == ["ok"]
    assert written_line(transport) == (
        '{"id":1,"method":"set_music","params":[1, "192.168.0.2", 54321]}\r\n'
    )


@pytest.mark.asyncio
async def test_bg_set_rgb():
    transport = MockTransport(TEST_OK_VAL)
    conn = conn_with_method(Method.BG_SET_RGB, transport)
    assert await conn.bg_set_rgb(RGB(0, 0, 255), Transition.smooth(500)) == ["ok"]
    assert written_line(transport) == (
        '{"id":1,"method":"bg_set_rgb","params":[255, "smooth", 500]}\r\n'
    )


@pytest.mark.asyncio
async def test_context_manager_closes_transport():
    transport = MockTransport()
    async with conn_with_method(Method.TOGGLE, transport):
        pass
    assert transport.closed


@pytest.mark.asyncio
async def test_open_over_tcp():
    received = []

    async def handle(reader, writer):
        line = await reader.readline()
        received.append(line)
        request_id = decode_request(line)[0]
        writer.write(f'{{"id":{request_id},"result":["ok"]}}\r\n'.encode())
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    device = replace(make_device(Method.SET_NAME), address=f"127.0.0.1:{port}")
    async with server:
        async with await YeelightConnection.open(device, read_timeout=5) as conn:
            assert await conn.set_name("lamp") == ["ok"]
    assert decode_request(received[0])[1:] == ("set_name", ["lamp"])


@pytest.mark.asyncio
async def test_open_failure():
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    device = replace(make_device(Method.TOGGLE), address=f"127.0.0.1:{port}")
    with pytest.raises(TransportError):
        await YeelightConnection.open(device, connect_timeout=5)


@pytest.mark.asyncio
async def test_open_with_bad_address():
    device = replace(make_device(Method.TOGGLE), address="127.0.0.1:notaport")
    with pytest.raises(TransportError) as info:
        await YeelightConnection.open(device, connect_timeout=5)
    assert isinstance(info.value.__cause__, ValueError)

from __future__ import annotations

import asyncio

import hwrelay.transport.uart as uart_mod
from hwrelay.model.events import Connected, Disconnected, Received


class FakeSerialChannel:
    """Stands in for the asyncio transport pyserial-asyncio hands the protocol."""

    def __init__(self, protocol):
        self.protocol = protocol
        self.written = []
        self.closing = False
        self.close_called = 0
        self.raise_on_write = None

    def write(self, data: bytes) -> None:
        if self.raise_on_write is not None:
            raise self.raise_on_write
        self.written.append(data)

    def is_closing(self) -> bool:
        return self.closing

    def close(self) -> None:
        self.close_called += 1
        self.closing = True
        self.protocol.connection_lost(None)

    # test helper: device unplugged / I/O error
    def lose(self, exc=None) -> None:
        self.closing = True
        self.protocol.connection_lost(exc)


def install_fake_serial(monkeypatch, *, fail_with=None):
    created = {"calls": 0}

    async def fake_create(loop, protocol_factory, url, baudrate):
        created["calls"] += 1
        created["url"] = url
        created["baudrate"] = baudrate
        if fail_with is not None:
            raise fail_with
        proto = protocol_factory()
        ch = FakeSerialChannel(proto)
        created["channel"] = ch
        proto.connection_made(ch)
        return ch, proto

    monkeypatch.setattr(uart_mod.serial_asyncio, "create_serial_connection", fake_create)
    return created


def make_transport():
    events = []
    t = uart_mod.UARTTransport("/dev/ttyUSB0", baudrate=9600)
    t.bind(events.append)
    return t, events


def test_start_opens_port_and_posts_connected(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, events = make_transport()

    asyncio.run(t.start())

    assert created["url"] == "/dev/ttyUSB0"
    assert created["baudrate"] == 9600
    assert events == [Connected()]
    assert t.is_ready() is True


def test_send_writes_newline_terminated_payload_once(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, _ = make_transport()
    asyncio.run(t.start())

    assert t.send("LED ON") is True
    assert created["channel"].written == [b"LED ON\n"]


def test_send_encodes_utf8(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, _ = make_transport()
    asyncio.run(t.start())

    t.send("temp=21°C")
    assert created["channel"].written == ["temp=21°C\n".encode("utf-8")]


def test_send_before_open_is_dropped():
    t, events = make_transport()
    assert t.is_ready() is False
    assert t.send("x") is False
    assert events == []


def test_open_failure_is_logged_not_raised(monkeypatch, caplog):
    created = install_fake_serial(monkeypatch, fail_with=uart_mod.SerialException("port busy"))
    t, events = make_transport()

    asyncio.run(t.start())  # must not raise

    assert created["calls"] == 1
    assert t.is_ready() is False
    assert t.send("x") is False
    assert len(events) == 1
    assert isinstance(events[0], Disconnected)
    assert "port busy" in events[0].reason
    assert "SERIAL_OPEN_FAILED port=/dev/ttyUSB0" in caplog.text


def test_start_opens_only_once(monkeypatch):
    created = install_fake_serial(monkeypatch, fail_with=uart_mod.SerialException("missing"))
    t, _ = make_transport()

    asyncio.run(t.start())
    asyncio.run(t.start())

    assert created["calls"] == 1


def test_channel_lost_posts_disconnected_and_drops_sends(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, events = make_transport()
    asyncio.run(t.start())

    created["channel"].lose(OSError("device reports readiness to read but returned no data"))

    assert isinstance(events[-1], Disconnected)
    assert t.is_ready() is False
    assert t.send("x") is False
    assert created["channel"].written == []


def test_write_error_returns_false(monkeypatch, caplog):
    created = install_fake_serial(monkeypatch)
    t, _ = make_transport()
    asyncio.run(t.start())

    created["channel"].raise_on_write = uart_mod.SerialException("write failed")
    assert t.send("x") is False
    assert "SERIAL_WRITE_FAILED port=/dev/ttyUSB0 err=write failed" in caplog.text


def test_incoming_lines_posted_as_received(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, events = make_transport()
    asyncio.run(t.start())

    proto = created["channel"].protocol
    proto.data_received(b"ok\r\nbat")
    proto.data_received(b"tery=87\n\n")

    assert events[1:] == [Received("ok"), Received("battery=87")]


def test_close_closes_channel(monkeypatch):
    created = install_fake_serial(monkeypatch)
    t, events = make_transport()
    asyncio.run(t.start())

    asyncio.run(t.close())
    asyncio.run(t.close())

    assert created["channel"].close_called == 1
    assert events[-1] == Disconnected(reason="closed by relay")
    assert t.is_ready() is False

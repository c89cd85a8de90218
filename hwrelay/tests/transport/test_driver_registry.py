from __future__ import annotations

import asyncio

import pytest

from hwrelay.app.config import RelayConfig
from hwrelay.core.errors import RelayConfigError
from hwrelay.model.transport import TransportMode
from hwrelay.transport.errors import TransportError
from hwrelay.transport.factory import TransportFactory
from hwrelay.transport.null import NullTransport
from hwrelay.transport.registry import TransportDriverRegistry
from hwrelay.transport.remote import RemoteSocketTransport
from hwrelay.transport.uart import UARTTransport
from hwrelay.tests.fakes import FakeTransport


def test_registry_has_and_get_class_case_insensitive():
    reg = TransportDriverRegistry({"FAKE": FakeTransport})

    assert reg.has("fake") is True
    assert reg.has("Fake") is True
    assert reg.get_class("fAkE") is FakeTransport


def test_registry_get_class_unknown_raises():
    reg = TransportDriverRegistry({})
    with pytest.raises(TransportError):
        reg.get_class("serial")


def test_default_registry_covers_every_mode():
    reg = TransportDriverRegistry.default()
    assert reg.get_class(TransportMode.SERIAL.value) is UARTTransport
    assert reg.get_class(TransportMode.REMOTE.value) is RemoteSocketTransport
    assert reg.get_class(TransportMode.NONE.value) is NullTransport


def test_factory_builds_serial_with_config_params():
    cfg = RelayConfig.load(environ={"SERIAL_PORT": "COM3", "SERIAL_BAUD": "57600"})
    t = TransportFactory().create(cfg)

    assert isinstance(t, UARTTransport)
    assert t.port == "COM3"
    assert t.baudrate == 57600
    assert t.auto_reconnect is False


def test_factory_builds_remote_with_config_params():
    cfg = RelayConfig.load(environ={"ESP32_WS_URL": "ws://10.0.0.7:81"})
    t = TransportFactory().create(cfg)

    assert isinstance(t, RemoteSocketTransport)
    assert t.url == "ws://10.0.0.7:81"
    assert t.auto_reconnect is True


def test_factory_builds_null_without_target():
    t = TransportFactory().create(RelayConfig.load(environ={}))
    assert isinstance(t, NullTransport)


def test_factory_constructor_mismatch_raises_config_error():
    class NoParams(NullTransport):
        def __init__(self):
            super().__init__()

    reg = TransportDriverRegistry({"serial": NoParams})
    cfg = RelayConfig.load(environ={"SERIAL_PORT": "COM3"})

    with pytest.raises(RelayConfigError) as ei:
        TransportFactory(reg).create(cfg)
    assert ei.value.details["mode"] == "serial"


def test_factory_unknown_driver_raises_config_error():
    with pytest.raises(RelayConfigError):
        TransportFactory(TransportDriverRegistry({})).create(RelayConfig.load(environ={}))


def test_null_transport_never_ready_and_drops_everything():
    events = []
    t = NullTransport()
    t.bind(events.append)

    asyncio.run(t.start())

    assert t.is_ready() is False
    assert [t.send("x") for _ in range(3)] == [False, False, False]
    assert t.auto_reconnect is False
    assert events == []
    asyncio.run(t.close())

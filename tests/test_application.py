import logging
import xml.etree.ElementTree as ET

import pytest

from bluetool.service.application import (
    UUID_SUFFIX,
    AdvertisingError,
    Application,
    ApplicationConfig,
)
from bluetool.service.advertisement import LE_ADVERTISEMENT_INTERFACE
from bluetool.service.errors import (
    CALLBACK_FUNCTION_ERROR,
    CALLBACK_NOT_REGISTERED,
    CallbackError,
    DBusError,
)
from bluetool.service.gatt_descriptor import INTROSPECTABLE_INTERFACE
from bluetool.service.gatt_service import GATT_SERVICE_INTERFACE
from bluetool.service.object_manager import INTERFACES_ADDED, OBJECT_MANAGER_INTERFACE
from bluetool.service.properties import PROPERTIES_INTERFACE

APP_PATH = "/example/app"
ADV_PATH = "/org/bluez/advertisement/hci0"


class FakeConn:
    def __init__(self):
        self.exports = {}
        self.signals = []
        self.names = []
        self.calls = []
        self.fail = set()

    def export(self, obj, path, iface):
        self.exports[(path, iface)] = obj

    def emit(self, path, signal, *args):
        self.signals.append((path, signal, args))

    def request_name(self, name):
        self.names.append(name)

    def call(self, destination, path, iface, method, *args):
        self.calls.append((destination, path, iface, method, args))
        if method in self.fail:
            raise RuntimeError("boom")


@pytest.fixture
def conn():
    return FakeConn()


def make_app(conn, **kwargs):
    config = ApplicationConfig(
        object_name="org.bluez",
        object_path=kwargs.pop("object_path", APP_PATH),
        conn=conn,
        uuid="AAAA",
        uuid_suffix=UUID_SUFFIX,
        local_name="demo",
        **kwargs,
    )
    return Application(config)


@pytest.fixture
def app(conn):
    return make_app(conn)


def build_tree(app, uuid="AAAA1111", advertised=True):
    service = app.create_service({"UUID": uuid, "Primary": True}, advertised)
    app.add_service(service)
    char = service.create_characteristic({"UUID": uuid, "Value": b"\x01"})
    service.add_characteristic(char)
    desc = char.create_descriptor({"UUID": uuid, "Value": b"\x02"})
    char.add_descriptor(desc)
    return service, char, desc


@pytest.mark.parametrize(
    "kwargs",
    [
        {"object_name": "", "object_path": APP_PATH, "conn": object()},
        {"object_name": "org.bluez", "object_path": "", "conn": object()},
        {"object_name": "org.bluez", "object_path": APP_PATH, "conn": None},
    ],
)
def test_required_config(kwargs):
    with pytest.raises(ValueError):
        Application(ApplicationConfig(**kwargs))


def test_accessors(app, conn):
    assert app.path() == APP_PATH
    assert app.name() == "org.bluez"
    assert app.services() == {}


def test_generate_uuid_short(app):
    assert app.generate_uuid("1111") == "AAAA1111-0000-1000-8000-00805F9B34FB"


def test_generate_uuid_eight_chars_drops_base(app):
    assert app.generate_uuid("12345678") == "12345678" + UUID_SUFFIX


def test_create_service_numbers_paths(app):
    first = app.create_service({"UUID": "a"})
    second = app.create_service({"UUID": "b"}, True)
    assert first.path() == APP_PATH + "/service1"
    assert second.path() == APP_PATH + "/service2"
    assert first.advertised() is False
    assert second.advertised() is True
    assert first.app() is app


def test_create_service_on_root_path(conn):
    app = make_app(conn, object_path="/")
    assert app.create_service({"UUID": "a"}).path() == "/service1"


def test_create_service_does_not_add(app):
    app.create_service({"UUID": "a"})
    assert app.services() == {}


def test_add_service_tracks_and_announces(app, conn):
    service = app.create_service({"UUID": "AAAA1111", "Primary": True})
    app.add_service(service)
    assert app.services() == {service.path(): service}
    obj = app.object_manager().get_managed_object(service.path())
    assert obj[GATT_SERVICE_INTERFACE]["UUID"] == "AAAA1111"
    assert (service.path(), INTERFACES_ADDED) in [(p, s) for p, s, _ in conn.signals]


def test_export_tree_lists_all_children(app, conn):
    service, char, desc = build_tree(app)
    xml = conn.exports[(APP_PATH, INTROSPECTABLE_INTERFACE)].introspect()
    root = ET.fromstring(xml)
    children = {n.get("name") for n in root.findall("node")}
    assert children == {service.path()[1:], char.path()[1:], desc.path()[1:]}
    ifaces = {i.get("name") for i in root.findall("interface")}
    assert ifaces == {INTROSPECTABLE_INTERFACE, OBJECT_MANAGER_INTERFACE}


def test_remove_service(app, conn):
    service = app.create_service({"UUID": "a"})
    app.add_service(service)
    app.remove_service(service)
    assert app.services() == {}
    with pytest.raises(LookupError):
        app.object_manager().get_managed_object(service.path())
    xml = conn.exports[(APP_PATH, INTROSPECTABLE_INTERFACE)].introspect()
    assert ET.fromstring(xml).findall("node") == []


def test_remove_unknown_service_is_ignored(app, conn):
    service = app.create_service({"UUID": "a"})
    app.remove_service(service)
    assert conn.signals == []
    assert app.services() == {}


def test_run_claims_name_and_exports(app, conn):
    app.run()
    assert conn.names == ["org.bluez"]
    assert conn.exports[(APP_PATH, OBJECT_MANAGER_INTERFACE)] is app.object_manager()
    assert (APP_PATH, INTROSPECTABLE_INTERFACE) in conn.exports


def test_handle_read_without_callback(app):
    with pytest.raises(CallbackError) as info:
        app.handle_read("/s", "/c")
    assert info.value.code == CALLBACK_NOT_REGISTERED
    assert str(info.value) == "No callback registered."


def test_handle_write_without_callback(app):
    with pytest.raises(CallbackError) as info:
        app.handle_write("/s", "/c", b"x")
    assert info.value.code == CALLBACK_NOT_REGISTERED
    assert str(info.value) == "No callback registered."


def test_handle_descriptor_read_without_callback(app):
    with pytest.raises(CallbackError) as info:
        app.handle_descriptor_read("/s", "/c", "/d")
    assert info.value.code == CALLBACK_NOT_REGISTERED
    assert str(info.value) == "No callback registered."


def test_handle_descriptor_write_without_callback(app):
    with pytest.raises(CallbackError) as info:
        app.handle_descriptor_write("/s", "/c", "/d", b"x")
    assert info.value.code == CALLBACK_NOT_REGISTERED
    assert str(info.value) == "No callback registered."


def test_handle_read_passes_arguments(conn):
    seen = []

    def read(app, service_path, char_path):
        seen.append((app, service_path, char_path))
        return b"\x09"

    app = make_app(conn, read_func=read)
    assert app.handle_read("/s", "/c") == b"\x09"
    assert seen == [(app, "/s", "/c")]


def test_handle_write_passes_arguments(conn):
    seen = []
    app = make_app(conn, write_func=lambda *args: seen.append(args))
    assert app.handle_write("/s", "/c", b"v") is None
    assert seen == [(app, "/s", "/c", b"v")]


def test_handle_descriptor_callbacks(conn):
    seen = []
    app = make_app(
        conn,
        desc_read_func=lambda a, s, c, d: (s, c, d),
        desc_write_func=lambda *args: seen.append(args),
    )
    assert app.handle_descriptor_read("/s", "/c", "/d") == ("/s", "/c", "/d")
    app.handle_descriptor_write("/s", "/c", "/d", b"v")
    assert seen == [(app, "/s", "/c", "/d", b"v")]


def test_callback_exception_is_wrapped(conn):
    def read(app, service_path, char_path):
        raise ValueError("bad read")

    app = make_app(conn, read_func=read)
    with pytest.raises(CallbackError) as info:
        app.handle_read("/s", "/c")
    assert info.value.code == CALLBACK_FUNCTION_ERROR
    assert str(info.value) == "bad read"


def test_callback_error_passes_through(conn):
    original = CallbackError(7, "custom")

    def write(app, service_path, char_path, value):
        raise original

    app = make_app(conn, write_func=write)
    with pytest.raises(CallbackError) as info:
        app.handle_write("/s", "/c", b"v")
    assert info.value is original


def test_characteristic_read_falls_back_to_stored_value(app):
    _, char, desc = build_tree(app)
    assert char.read_value({}) == b"\x01"
    assert desc.read_value({}) == b"\x02"


def test_characteristic_read_through_callback(conn):
    app = make_app(conn, read_func=lambda a, s, c: b"\x09")
    _, char, _ = build_tree(app)
    assert char.read_value({}) == b"\x09"


def test_characteristic_read_error_becomes_dbus_error(conn):
    def read(app, service_path, char_path):
        raise ValueError("bad read")

    app = make_app(conn, read_func=read)
    _, char, _ = build_tree(app)
    with pytest.raises(DBusError):
        char.read_value({})


def test_start_advertising(app, conn):
    build_tree(app, uuid="AAAA1111", advertised=True)
    build_tree(app, uuid="AAAA2222", advertised=False)
    assert app.start_advertising("hci0") is None

    assert [c[3] for c in conn.calls] == ["RegisterAdvertisement", "Set", "Set"]
    register = conn.calls[0]
    assert register[0] == "org.bluez"
    assert register[1] == "/org/bluez/hci0"
    assert register[4] == (ADV_PATH, {})
    assert [c[4][1:] for c in conn.calls[1:]] == [("Discoverable", True), ("Powered", True)]

    props = conn.exports[(ADV_PATH, PROPERTIES_INTERFACE)]
    assert props.get(LE_ADVERTISEMENT_INTERFACE, "ServiceUUIDs") == ["AAAA1111"]
    assert props.get(LE_ADVERTISEMENT_INTERFACE, "LocalName") == "demo"
    assert props.get(LE_ADVERTISEMENT_INTERFACE, "Type") == "peripheral"


def test_start_advertising_twice_is_noop(app, conn):
    assert app.start_advertising("hci0") is None
    count = len(conn.calls)
    assert app.start_advertising("hci0") is None
    assert len(conn.calls) == count


def test_start_advertising_warns_over_limit(app, caplog):
    build_tree(app, uuid=app.generate_uuid("1111"))
    build_tree(app, uuid=app.generate_uuid("2222"))
    with caplog.at_level(logging.WARNING):
        app.start_advertising("hci0")
    assert "31 bytes" in caplog.text


def test_register_failure_resets_state(app, conn):
    conn.fail = {"RegisterAdvertisement"}
    with pytest.raises(AdvertisingError):
        app.start_advertising("hci0")
    conn.fail = set()
    app.start_advertising("hci0")
    registers = [c for c in conn.calls if c[3] == "RegisterAdvertisement"]
    assert len(registers) == 2


def test_stop_advertising(app, conn):
    app.start_advertising("hci0")
    assert app.stop_advertising() is None
    last = conn.calls[-1]
    assert last[3] == "UnregisterAdvertisement"
    assert last[4] == (ADV_PATH,)
    count = len(conn.calls)
    assert app.stop_advertising() is None
    assert len(conn.calls) == count


def test_stop_without_advertising(app, conn):
    assert app.stop_advertising() is None
    assert conn.calls == []


def test_stop_failure_still_resets(app, conn):
    app.start_advertising("hci0")
    conn.fail = {"UnregisterAdvertisement"}
    with pytest.raises(RuntimeError):
        app.stop_advertising()
    conn.fail = set()
    app.start_advertising("hci0")
    registers = [c for c in conn.calls if c[3] == "RegisterAdvertisement"]
    assert len(registers) == 2
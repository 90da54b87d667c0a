"""A GATT descriptor exported as org.bluez.GattDescriptor1."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bluetool.service.errors import CALLBACK_NOT_REGISTERED, CallbackError, DBusError
from bluetool.service.properties import PROPERTIES_INTERFACE, Properties

if TYPE_CHECKING:
    from bluetool.service.gatt_characteristic import GattCharacteristic1

log = logging.getLogger(__name__)

GATT_DESCRIPTOR_INTERFACE = "org.bluez.GattDescriptor1"
INTROSPECTABLE_INTERFACE = "org.freedesktop.DBus.Introspectable"

_Args = Sequence[tuple[str, str]]
_Method = tuple[str, _Args, _Args]

_STANDARD_INTERFACES: tuple[tuple[str, tuple[_Method, ...]], ...] = (
    (INTROSPECTABLE_INTERFACE, (("Introspect", (), (("xml", "s"),)),)),
    (
        PROPERTIES_INTERFACE,
        (
            ("Get", (("interface", "s"), ("name", "s")), (("value", "v"),)),
            ("GetAll", (("interface", "s"),), (("props", "a{sv}"),)),
            ("Set", (("interface", "s"), ("name", "s"), ("value", "v")), ()),
        ),
    ),
)

_DESCRIPTOR_METHODS: tuple[_Method, ...] = (
    ("ReadValue", (("options", "a{sv}"),), (("value", "ay"),)),
    ("WriteValue", (("value", "ay"), ("options", "a{sv}")), ()),
)


def _get_field(props: Any, name: str) -> Any:
    if isinstance(props, Mapping):
        return props.get(name)
    return getattr(props, name, None)


def _set_field(props: Any, name: str, value: Any) -> None:
    if isinstance(props, MutableMapping):
        props[name] = value
    else:
        setattr(props, name, value)


class _Introspectable:
    """Answers org.freedesktop.DBus.Introspectable.Introspect."""

    def __init__(self, xml: str) -> None:
        self.xml = xml

    def introspect(self) -> str:
        return self.xml


def _add_interface(
    node: ET.Element,
    name: str,
    methods: Sequence[_Method],
    properties: Sequence[Mapping[str, str]],
) -> None:
    iface = ET.SubElement(node, "interface", name=name)
    for method_name, ins, outs in methods:
        method = ET.SubElement(iface, "method", name=method_name)
        for arg, sig in ins:
            ET.SubElement(method, "arg", name=arg, type=sig, direction="in")
        for arg, sig in outs:
            ET.SubElement(method, "arg", name=arg, type=sig, direction="out")
    for prop in properties:
        ET.SubElement(
            iface, "property", name=prop["name"], type=prop["type"], access=prop["access"]
        )


def _introspection_xml(
    interface: str,
    methods: Sequence[_Method],
    properties: Sequence[Mapping[str, str]],
) -> str:
    node = ET.Element("node")
    for name, standard_methods in _STANDARD_INTERFACES:
        _add_interface(node, name, standard_methods, ())
    _add_interface(node, interface, methods, properties)
    return ET.tostring(node, encoding="unicode")


def _expose(obj: Any, methods: Sequence[_Method]) -> None:
    """Export an object, its properties and its introspection data."""
    conn = obj.config.conn
    path = obj.path()
    interface = obj.interface()
    conn.export(obj, path, interface)
    for iface, props in obj.properties().items():
        obj.properties_interface.add_properties(iface, props)
    obj.properties_interface.expose(path)
    xml = _introspection_xml(
        interface, methods, obj.properties_interface.introspection(interface)
    )
    conn.export(_Introspectable(xml), path, INTROSPECTABLE_INTERFACE)


@dataclass
class GattDescriptor1Config:
    """Where a descriptor lives and what it belongs to."""

    object_path: str
    characteristic: GattCharacteristic1
    id: int
    conn: Any


class GattDescriptor1:
    """A descriptor of a characteristic, backed by application callbacks."""

    def __init__(self, config: GattDescriptor1Config, props: Any) -> None:
        self.config = config
        self.props = props
        self.properties_interface = Properties(config.conn)
        self.properties_interface.add_properties(self.interface(), props)

    def path(self) -> str:
        """Object path of the descriptor."""
        return self.config.object_path

    def interface(self) -> str:
        """D-Bus interface name."""
        return GATT_DESCRIPTOR_INTERFACE

    def properties(self) -> dict[str, Any]:
        """Property sets by interface, linked to the owning characteristic."""
        _set_field(self.props, "Characteristic", self.config.characteristic.path())
        return {self.interface(): self.props}

    def _owners(self) -> tuple[Any, Any]:
        char = self.config.characteristic
        return char, char.config.service

    def read_value(self, options: Mapping[str, Any] | None = None) -> Any:
        """Read through the application, or return the stored value."""
        char, service = self._owners()
        try:
            return service.app().handle_descriptor_read(
                service.path(), char.path(), self.path()
            )
        except CallbackError as err:
            if err.code == CALLBACK_NOT_REGISTERED:
                return _get_field(self.props, "Value")
            raise DBusError(str(err)) from err

    def write_value(self, value: bytes, options: Mapping[str, Any] | None = None) -> None:
        """Write through the application, or store the value."""
        char, service = self._owners()
        try:
            service.app().handle_descriptor_write(
                service.path(), char.path(), self.path(), value
            )
        except CallbackError as err:
            if err.code != CALLBACK_NOT_REGISTERED:
                raise DBusError(str(err)) from err
            try:
                self.update_value(value)
            except DBusError as update_err:
                log.debug("Descriptor value not published: %s", update_err)

    def update_value(self, value: bytes) -> None:
        """Store a new value and publish it on the properties interface."""
        _set_field(self.props, "Value", value)
        self.properties_interface.set(self.interface(), "Value", value)

    def expose(self) -> None:
        """Export the descriptor on its connection."""
        _expose(self, _DESCRIPTOR_METHODS)
"""A GATT application: a tree of services exported on D-Bus, with advertising."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from bluetool.service.advertisement import LEAdvertisement1, LEAdvertisement1Config
from bluetool.service.errors import (
    CALLBACK_FUNCTION_ERROR,
    CALLBACK_NOT_REGISTERED,
    CallbackError,
)
from bluetool.service.gatt_descriptor import (
    INTROSPECTABLE_INTERFACE,
    _add_interface,
    _get_field,
    _Introspectable,
)
from bluetool.service.gatt_service import GattService1, GattService1Config
from bluetool.service.object_manager import OBJECT_MANAGER_INTERFACE, ObjectManager
from bluetool.service.properties import PROPERTIES_INTERFACE

log = logging.getLogger(__name__)

UUID_SUFFIX = "-0000-1000-8000-00805F9B34FB"

BLUEZ_BUS = "org.bluez"
LE_ADVERTISING_MANAGER_INTERFACE = "org.bluez.LEAdvertisingManager1"
ADAPTER_INTERFACE = "org.bluez.Adapter1"

_ADVERTISING_LIMIT = 31

_INTROSPECT_METHODS = (("Introspect", (), (("xml", "s"),)),)
_OBJECT_MANAGER_METHODS = (
    ("GetManagedObjects", (), (("objects", "a{oa{sa{sv}}}"),)),
)

WriteCallback = Callable[["Application", str, str, bytes], None]
ReadCallback = Callable[["Application", str, str], bytes]
DescriptorWriteCallback = Callable[["Application", str, str, str, bytes], None]
DescriptorReadCallback = Callable[["Application", str, str, str], bytes]


class AdvertisingError(Exception):
    """Advertising could not be set up."""


@dataclass
class ApplicationConfig:
    """Configuration of a GATT application.

    The connection needs ``export(obj, path, interface)``,
    ``emit(path, signal, *args)``, ``request_name(name)`` and
    ``call(destination, path, interface, method, *args)``.
    """

    object_name: str = ""
    object_path: str = ""
    conn: Any = None
    uuid: str = ""
    uuid_suffix: str = ""
    local_name: str = ""
    write_func: Optional[WriteCallback] = None
    read_func: Optional[ReadCallback] = None
    desc_write_func: Optional[DescriptorWriteCallback] = None
    desc_read_func: Optional[DescriptorReadCallback] = None


class Application:
    """Services exposed to the Bluetooth daemon, with read and write callbacks."""

    def __init__(self, config: ApplicationConfig) -> None:
        if not config.object_name:
            raise ValueError("object_name is required")
        if not config.object_path:
            raise ValueError("object_path is required")
        if config.conn is None:
            raise ValueError("conn is required")
        self.config = config
        self._object_manager = ObjectManager(config.conn)
        self._services: dict[str, GattService1] = {}
        self._service_index = 0
        self._advertisement: LEAdvertisement1 | None = None
        self._ad_manager_path: str | None = None

    def object_manager(self) -> ObjectManager:
        """The object manager announcing the application's objects."""
        return self._object_manager

    def path(self) -> str:
        """Object path of the application."""
        return self.config.object_path

    def name(self) -> str:
        """Bus name of the application."""
        return self.config.object_name

    def generate_uuid(self, uuid_val: str) -> str:
        """Build a 128 bit UUID; an 8 character value replaces the base."""
        base = "" if len(uuid_val) == 8 else self.config.uuid
        return base + uuid_val + self.config.uuid_suffix

    def create_service(self, props: Any, advertised: bool = False) -> GattService1:
        """Create a service under the application; it is not yet added."""
        self._service_index += 1
        app_path = "" if self.path() == "/" else self.path()
        config = GattService1Config(
            app=self,
            id=self._service_index,
            object_path=f"{app_path}/service{self._service_index}",
            conn=self.config.conn,
            advertised=advertised,
        )
        return GattService1(config, props)

    def add_service(self, service: GattService1) -> None:
        """Expose a service and announce it."""
        self._services[service.path()] = service
        service.expose()
        self.export_tree()
        self._object_manager.add_object(service.path(), service.properties())

    def remove_service(self, service: GattService1) -> None:
        """Withdraw a service, if it belongs to the application."""
        if self._services.pop(service.path(), None) is None:
            return
        self._object_manager.remove_object(service.path())
        self.export_tree()

    def services(self) -> dict[str, GattService1]:
        """Services by object path."""
        return self._services

    def _expose(self) -> None:
        conn = self.config.conn
        conn.request_name(self.name())
        conn.export(self._object_manager, self.path(), OBJECT_MANAGER_INTERFACE)
        self.export_tree()

    def export_tree(self) -> None:
        """Publish introspection data listing every object of the application."""
        children = []
        for service_path, service in self._services.items():
            children.append(service_path[1:])
            for char_path, char in service.characteristics().items():
                children.append(char_path[1:])
                children.extend(desc_path[1:] for desc_path in char.descriptors())

        node = ET.Element("node")
        _add_interface(node, INTROSPECTABLE_INTERFACE, _INTROSPECT_METHODS, ())
        _add_interface(node, OBJECT_MANAGER_INTERFACE, _OBJECT_MANAGER_METHODS, ())
        for child in children:
            ET.SubElement(node, "node", name=child)
        xml = ET.tostring(node, encoding="unicode")
        self.config.conn.export(
            _Introspectable(xml), self.path(), INTROSPECTABLE_INTERFACE
        )

    def _invoke(self, func: Callable[..., Any] | None, *args: Any) -> Any:
        if func is None:
            raise CallbackError(CALLBACK_NOT_REGISTERED, "No callback registered.")
        try:
            return func(self, *args)
        except CallbackError:
            raise
        except Exception as err:
            raise CallbackError(CALLBACK_FUNCTION_ERROR, str(err)) from err

    def handle_read(self, service_path: str, char_path: str) -> bytes:
        """Read a characteristic through the registered callback."""
        return self._invoke(self.config.read_func, service_path, char_path)

    def handle_write(self, service_path: str, char_path: str, value: bytes) -> None:
        """Write a characteristic through the registered callback."""
        self._invoke(self.config.write_func, service_path, char_path, value)

    def handle_descriptor_read(
        self, service_path: str, char_path: str, desc_path: str
    ) -> bytes:
        """Read a descriptor through the registered callback."""
        return self._invoke(
            self.config.desc_read_func, service_path, char_path, desc_path
        )

    def handle_descriptor_write(
        self, service_path: str, char_path: str, desc_path: str, value: bytes
    ) -> None:
        """Write a descriptor through the registered callback."""
        self._invoke(
            self.config.desc_write_func, service_path, char_path, desc_path, value
        )

    def run(self) -> None:
        """Claim the bus name and export the application."""
        self._expose()

    def _bluez_call(self, path: str, interface: str, method: str, *args: Any) -> Any:
        return self.config.conn.call(BLUEZ_BUS, path, interface, method, *args)

    def start_advertising(self, device_interface: str) -> None:
        """Advertise the advertised services on an adapter such as ``hci0``."""
        if self._advertisement is not None or self._ad_manager_path is not None:
            log.debug("Already advertising on %s", device_interface)
            return

        path = f"/org/bluez/advertisement/{device_interface}"
        log.debug("Registering service on %s (%s)", device_interface, path)

        service_uuids = [
            _get_field(service.props, "UUID")
            for service in self._services.values()
            if service.advertised()
        ]
        if len(",".join(service_uuids).encode()) > _ADVERTISING_LIMIT:
            log.warning(
                "Advertisment limit of 31 bytes may have been exceeded. Consider "
                "not exposing all services IDs with create_service(props, False)"
            )

        props = {
            "Type": "peripheral",
            "LocalName": self.config.local_name,
            "ServiceUUIDs": service_uuids,
        }
        config = LEAdvertisement1Config(object_path=path, conn=self.config.conn)
        try:
            advertisement = LEAdvertisement1(config, props)
        except Exception as err:
            raise AdvertisingError(f"NewLEAdvertisement1: {err}") from err

        self._advertisement = advertisement
        try:
            advertisement.expose()
        except Exception as err:
            self._advertisement = None
            raise AdvertisingError(f"Expose: {err}") from err

        adapter_path = f"/org/bluez/{device_interface}"
        self._ad_manager_path = adapter_path
        try:
            self._bluez_call(
                adapter_path,
                LE_ADVERTISING_MANAGER_INTERFACE,
                "RegisterAdvertisement",
                path,
                {},
            )
        except Exception as err:
            self._advertisement = None
            self._ad_manager_path = None
            raise AdvertisingError(f"RegisterAdvertisement: {err}") from err

        for prop in ("Discoverable", "Powered"):
            self._bluez_call(
                adapter_path, PROPERTIES_INTERFACE, "Set", ADAPTER_INTERFACE, prop, True
            )

    def stop_advertising(self) -> None:
        """Withdraw the advertisement, if one is active."""
        if self._advertisement is None or self._ad_manager_path is None:
            return
        advertisement = self._advertisement
        try:
            self._bluez_call(
                self._ad_manager_path,
                LE_ADVERTISING_MANAGER_INTERFACE,
                "UnregisterAdvertisement",
                advertisement.path(),
            )
        finally:
            advertisement.release()
            self._advertisement = None
            self._ad_manager_path = None
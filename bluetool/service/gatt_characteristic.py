"""A GATT characteristic exported as org.bluez.GattCharacteristic1."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bluetool.service.errors import CALLBACK_NOT_REGISTERED, CallbackError, DBusError
from bluetool.service.gatt_descriptor import (
    GattDescriptor1,
    GattDescriptor1Config,
    _expose,
    _get_field,
    _set_field,
)
from bluetool.service.properties import Properties

if TYPE_CHECKING:
    from bluetool.service.gatt_service import GattService1

log = logging.getLogger(__name__)

GATT_CHARACTERISTIC_INTERFACE = "org.bluez.GattCharacteristic1"

_CHARACTERISTIC_METHODS = (
    ("ReadValue", (("options", "a{sv}"),), (("value", "ay"),)),
    ("WriteValue", (("value", "ay"), ("options", "a{sv}")), ()),
    ("StartNotify", (), ()),
    ("StopNotify", (), ()),
)


@dataclass
class GattCharacteristic1Config:
    """Where a characteristic lives and which service owns it."""

    object_path: str
    service: GattService1
    id: int
    conn: Any


class GattCharacteristic1:
    """A characteristic of a service, backed by application callbacks."""

    def __init__(self, config: GattCharacteristic1Config, props: Any) -> None:
        self.config = config
        self.props = props
        self.properties_interface = Properties(config.conn)
        self._descriptors: dict[str, GattDescriptor1] = {}
        self._desc_index = 0
        self._notifying = False
        self.properties_interface.add_properties(self.interface(), props)

    @property
    def notifying(self) -> bool:
        """Whether a client asked for notifications."""
        return self._notifying

    def path(self) -> str:
        """Object path of the characteristic."""
        return self.config.object_path

    def interface(self) -> str:
        """D-Bus interface name."""
        return GATT_CHARACTERISTIC_INTERFACE

    def properties(self) -> dict[str, Any]:
        """Property sets by interface, listing the current descriptors."""
        _set_field(self.props, "Descriptors", self.descriptor_paths())
        return {self.interface(): self.props}

    def descriptors(self) -> dict[str, GattDescriptor1]:
        """Descriptors by object path."""
        return self._descriptors

    def descriptor_paths(self) -> list[str]:
        """Object paths of the descriptors."""
        return list(self._descriptors)

    def create_descriptor(self, props: Any) -> GattDescriptor1:
        """Create a descriptor under this characteristic; it is not yet added."""
        self._desc_index += 1
        config = GattDescriptor1Config(
            object_path=f"{self.path()}/desc{self._desc_index}",
            characteristic=self,
            id=self._desc_index,
            conn=self.config.conn,
        )
        _set_field(props, "Characteristic", self.path())
        return GattDescriptor1(config, props)

    def add_descriptor(self, desc: GattDescriptor1) -> None:
        """Expose a descriptor and announce it."""
        self._descriptors[desc.path()] = desc
        desc.expose()
        app = self.config.service.app()
        app.export_tree()
        app.object_manager().add_object(desc.path(), desc.properties())

    def remove_descriptor(self, desc: GattDescriptor1) -> None:
        """Withdraw a descriptor, if it belongs to this characteristic."""
        if self._descriptors.pop(desc.path(), None) is not None:
            self.config.service.app().object_manager().remove_object(desc.path())

    def read_value(self, options: Mapping[str, Any] | None = None) -> Any:
        """Read through the application, or return the stored value."""
        log.debug("Characteristic.ReadValue")
        service = self.config.service
        try:
            return service.app().handle_read(service.path(), self.path())
        except CallbackError as err:
            if err.code == CALLBACK_NOT_REGISTERED:
                return _get_field(self.props, "Value")
            raise DBusError(str(err)) from err

    def write_value(self, value: bytes, options: Mapping[str, Any] | None = None) -> None:
        """Write through the application, or store the value."""
        log.debug("Characteristic.WriteValue")
        service = self.config.service
        try:
            service.app().handle_write(service.path(), self.path(), value)
        except CallbackError as err:
            if err.code != CALLBACK_NOT_REGISTERED:
                raise DBusError(str(err)) from err
            self.update_value(value)

    def update_value(self, value: bytes) -> None:
        """Store a new value and publish it where the property allows."""
        _set_field(self.props, "Value", value)
        try:
            self.properties_interface.set(self.interface(), "Value", value)
        except DBusError as err:
            log.debug("Characteristic value not published: %s", err)

    def start_notify(self) -> None:
        """Start sending notifications."""
        log.debug("Characteristic.StartNotify")
        self._notifying = True

    def stop_notify(self) -> None:
        """Stop sending notifications."""
        log.debug("Characteristic.StopNotify")
        self._notifying = False

    def expose(self) -> None:
        """Export the characteristic on its connection."""
        _expose(self, _CHARACTERISTIC_METHODS)
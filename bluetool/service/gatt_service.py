"""A GATT service exported as org.bluez.GattService1."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bluetool.service.gatt_characteristic import (
    GattCharacteristic1,
    GattCharacteristic1Config,
)
from bluetool.service.gatt_descriptor import _expose, _set_field
from bluetool.service.properties import Properties

GATT_SERVICE_INTERFACE = "org.bluez.GattService1"


@dataclass
class GattService1Config:
    """Where a service lives and which application owns it."""

    app: Any
    id: int
    object_path: str
    conn: Any
    advertised: bool = False


class GattService1:
    """A service of an application, holding characteristics."""

    def __init__(self, config: GattService1Config, props: Any) -> None:
        self.config = config
        self.props = props
        self.properties_interface = Properties(config.conn)
        self._characteristics: dict[str, GattCharacteristic1] = {}
        self._char_index = 0
        self.properties_interface.add_properties(self.interface(), props)

    def interface(self) -> str:
        """D-Bus interface name."""
        return GATT_SERVICE_INTERFACE

    def app(self) -> Any:
        """The owning application."""
        return self.config.app

    def path(self) -> str:
        """Object path of the service."""
        return self.config.object_path

    def advertised(self) -> bool:
        """Whether the service UUID is included in advertisements."""
        return self.config.advertised

    def properties(self) -> dict[str, Any]:
        """Property sets by interface, listing the current characteristics."""
        _set_field(self.props, "Characteristics", self.characteristic_paths())
        return {self.interface(): self.props}

    def characteristics(self) -> dict[str, GattCharacteristic1]:
        """Characteristics by object path."""
        return self._characteristics

    def characteristic_paths(self) -> list[str]:
        """Object paths of the characteristics."""
        return list(self._characteristics)

    def create_characteristic(self, props: Any) -> GattCharacteristic1:
        """Create a characteristic under this service; it is not yet added."""
        self._char_index += 1
        config = GattCharacteristic1Config(
            object_path=f"{self.path()}/char{self._char_index}",
            service=self,
            id=self._char_index,
            conn=self.config.conn,
        )
        _set_field(props, "Service", self.path())
        return GattCharacteristic1(config, props)

    def add_characteristic(self, char: GattCharacteristic1) -> None:
        """Expose a characteristic and announce it."""
        self._characteristics[char.path()] = char
        char.expose()
        self.app().export_tree()
        self.app().object_manager().add_object(char.path(), char.properties())

    def remove_characteristic(self, char: GattCharacteristic1) -> None:
        """Withdraw a characteristic, if it belongs to this service."""
        if self._characteristics.pop(char.path(), None) is not None:
            self.app().object_manager().remove_object(char.path())

    def expose(self) -> None:
        """Export the service on its connection."""
        _expose(self, ())
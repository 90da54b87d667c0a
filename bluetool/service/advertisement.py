"""An LE advertisement exported as org.bluez.LEAdvertisement1."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bluetool.service.gatt_descriptor import _expose
from bluetool.service.properties import Properties

log = logging.getLogger(__name__)

LE_ADVERTISEMENT_INTERFACE = "org.bluez.LEAdvertisement1"

_ADVERTISEMENT_METHODS = (("Release", (), ()),)


@dataclass
class LEAdvertisement1Config:
    """Where an advertisement lives."""

    object_path: str
    conn: Any


class LEAdvertisement1:
    """Advertising data published for the Bluetooth daemon to broadcast."""

    def __init__(self, config: LEAdvertisement1Config, props: Any) -> None:
        self.config = config
        self.props = props
        self.released = False
        self.properties_interface = Properties(config.conn)
        self.properties_interface.add_properties(self.interface(), props)

    def interface(self) -> str:
        """D-Bus interface name."""
        return LE_ADVERTISEMENT_INTERFACE

    def path(self) -> str:
        """Object path of the advertisement."""
        return self.config.object_path

    def properties(self) -> dict[str, Any]:
        """Property sets by interface."""
        return {self.interface(): self.props}

    def release(self) -> None:
        """Mark the advertisement as removed by the daemon.

        The daemon has already unregistered it when this is called.
        """
        log.debug("Advertisement %s released", self.path())
        self.released = True

    def expose(self) -> None:
        """Export the advertisement on its connection."""
        _expose(self, _ADVERTISEMENT_METHODS)
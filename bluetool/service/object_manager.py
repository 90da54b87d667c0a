"""The org.freedesktop.DBus.ObjectManager view of exported objects."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from bluetool.service.errors import DBUS_ERROR, DBusError

log = logging.getLogger(__name__)

OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"
INTERFACES_ADDED = OBJECT_MANAGER_INTERFACE + ".InterfacesAdded"
INTERFACES_REMOVED = OBJECT_MANAGER_INTERFACE + ".InterfacesRemoved"


def _to_map(props: Any) -> dict[str, Any]:
    to_map = getattr(props, "to_map", None)
    if callable(to_map):
        items = to_map().items()
    elif dataclasses.is_dataclass(props) and not isinstance(props, type):
        items = ((f.name, getattr(props, f.name)) for f in dataclasses.fields(props))
    elif isinstance(props, Mapping):
        items = props.items()
    else:
        raise TypeError(f"cannot serialize {type(props).__name__}")
    return {name: value for name, value in items if value is not None}


class ObjectManager:
    """Tracks objects and their interfaces, signalling additions and removals.

    The connection needs ``emit(path, signal, *args)``.
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self._objects: dict[str, dict[str, Any]] = {}

    def signal_added(self, path: str) -> None:
        """Announce the interfaces of an object."""
        self._conn.emit(path, INTERFACES_ADDED, self.get_managed_object(path))

    def signal_removed(self, path: str, ifaces: Iterable[str] | None = None) -> None:
        """Announce that interfaces of an object are gone."""
        self._conn.emit(path, INTERFACES_REMOVED, list(ifaces or []))

    def get_managed_object(self, path: str) -> dict[str, dict[str, Any]]:
        """Return the current state of one object."""
        try:
            return self.get_managed_objects()[path]
        except KeyError:
            raise LookupError("Object not found") from None

    def get_managed_objects(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Return the current state of every object."""
        result: dict[str, dict[str, dict[str, Any]]] = {}
        for path, ifaces in self._objects.items():
            per_iface = result.setdefault(path, {})
            for iface, props in ifaces.items():
                try:
                    values = _to_map(props)
                except (TypeError, ValueError, AttributeError) as err:
                    log.error("Failed to serialize properties: %s", err)
                    raise DBusError(DBUS_ERROR) from err
                per_iface.setdefault(iface, {}).update(values)
        return result

    def add_object(self, path: str, val: Mapping[str, Any]) -> None:
        """Track an object's interfaces and announce them."""
        self._objects[path] = dict(val)
        self.signal_added(path)

    def remove_object(self, path: str) -> None:
        """Stop tracking an object and announce its removal, if tracked."""
        ifaces = self._objects.pop(path, None)
        if ifaces is not None:
            self.signal_removed(path, list(ifaces))
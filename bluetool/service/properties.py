"""Property store behind the org.freedesktop.DBus.Properties interface.

Property sets are dataclass instances or mappings. A dataclass field may
carry a ``dbus`` metadata tag: a comma separated list of ``emit``,
``invalidates``, ``writable`` or the name of a method of the store to use
as change callback. Fields whose value is None are not published.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Callable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any

from bluetool.service.errors import (
    DBUS_ERR_IFACE_NOT_FOUND,
    DBUS_ERR_PROP_NOT_FOUND,
    DBUS_ERR_PROP_READ_ONLY,
    DBUS_ERROR,
    DBusError,
)

log = logging.getLogger(__name__)

PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"
PROPERTIES_CHANGED = PROPERTIES_INTERFACE + ".PropertiesChanged"

ChangeCallback = Callable[[str, str, Any], None]


class Emit(enum.Enum):
    """How a property change is signalled."""

    FALSE = "false"
    TRUE = "true"
    INVALIDATES = "invalidates"


@dataclass
class Prop:
    """Published state and behaviour of one property."""

    value: Any
    emit: Emit = Emit.FALSE
    writable: bool = False
    callback: ChangeCallback | None = None


def _iter_fields(props: Any) -> Iterator[tuple[str, Any, str]]:
    if dataclasses.is_dataclass(props) and not isinstance(props, type):
        for f in dataclasses.fields(props):
            yield f.name, getattr(props, f.name), f.metadata.get("dbus", "")
    elif isinstance(props, Mapping):
        for name, value in props.items():
            yield str(name), value, ""
    else:
        raise TypeError(f"unsupported property set: {type(props).__name__}")


def _signature(value: Any) -> str:
    if isinstance(value, bool):
        return "b"
    if isinstance(value, int):
        return "i"
    if isinstance(value, float):
        return "d"
    if isinstance(value, str):
        return "s"
    if isinstance(value, (bytes, bytearray)):
        return "ay"
    if isinstance(value, Mapping):
        return "a{sv}"
    if isinstance(value, (list, tuple)):
        inner = {_signature(v) for v in value}
        return "a" + inner.pop() if len(inner) == 1 else "av"
    return "v"


class Properties:
    """Holds property sets per interface and publishes them on a connection.

    The connection needs ``export(obj, path, interface)`` and
    ``emit(path, signal, *args)``.
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self._props: dict[str, Any] = {}
        self._config: dict[str, dict[str, Prop]] = {}
        self._path: str | None = None

    @property
    def path(self) -> str | None:
        """Object path the properties are exposed on, if any."""
        return self._path

    def _parse_tag(self, conf: Prop, tag: str) -> None:
        for part in tag.split(","):
            if part == "emit":
                conf.emit = Emit.TRUE
                conf.writable = True
            elif part == "invalidates":
                conf.emit = Emit.INVALIDATES
                conf.writable = True
            elif part == "writable":
                conf.writable = True
            elif part and not part.startswith("_"):
                method = getattr(self, part, None)
                if callable(method):
                    conf.writable = True
                    conf.callback = method

    def _parse(self) -> None:
        for iface, props in self._props.items():
            config = self._config.setdefault(iface, {})
            for name, value, tag in _iter_fields(props):
                if value is None:
                    continue
                conf = Prop(value=value, callback=self._on_change)
                if tag:
                    self._parse_tag(conf, tag)
                config[name] = conf

    def _on_change(self, iface: str, name: str, value: Any) -> None:
        conf = self._config.get(iface, {}).get(name)
        if conf is None or not conf.writable:
            return
        log.debug("Set %s.%s", iface, name)
        target = self._props[iface]
        try:
            if isinstance(target, MutableMapping):
                target[name] = value
            else:
                setattr(target, name, value)
        except (AttributeError, TypeError) as err:
            log.error("Failed to set %s.%s: %s", iface, name, err)
            raise DBusError(DBUS_ERROR) from err

    def _lookup(self, iface: str, name: str) -> Prop:
        config = self._config.get(iface)
        if config is None:
            raise DBusError(DBUS_ERR_IFACE_NOT_FOUND)
        conf = config.get(name)
        if conf is None:
            raise DBusError(DBUS_ERR_PROP_NOT_FOUND)
        return conf

    def add_properties(self, iface: str, props: Any) -> None:
        """Add or replace the property set of an interface."""
        list(_iter_fields(props))
        self._props[iface] = props
        self._parse()

    def remove_properties(self, iface: str) -> None:
        """Drop the property set of an interface."""
        self._props.pop(iface, None)
        self._config.pop(iface, None)

    def expose(self, path: str) -> None:
        """Publish the properties interface on an object path."""
        self._path = path
        self._conn.export(self, path, PROPERTIES_INTERFACE)

    def introspection(self, iface: str) -> list[dict[str, str]]:
        """Describe the properties of an interface as name, type and access."""
        return [
            {
                "name": name,
                "type": _signature(conf.value),
                "access": "readwrite" if conf.writable else "read",
            }
            for name, conf in self._config.get(iface, {}).items()
        ]

    def get(self, iface: str, name: str) -> Any:
        """Return the published value of a property."""
        return self._lookup(iface, name).value

    def set(self, iface: str, name: str, value: Any) -> None:
        """Change a writable property and signal the change if configured."""
        conf = self._lookup(iface, name)
        if not conf.writable:
            raise DBusError(DBUS_ERR_PROP_READ_ONLY)
        if conf.callback is not None:
            conf.callback(iface, name, value)
        conf.value = value
        if self._path is None:
            return
        if conf.emit is Emit.TRUE:
            self._conn.emit(self._path, PROPERTIES_CHANGED, iface, {name: value}, [])
        elif conf.emit is Emit.INVALIDATES:
            self._conn.emit(self._path, PROPERTIES_CHANGED, iface, {}, [name])
"""Errors reported to D-Bus peers and by GATT application callbacks."""

from __future__ import annotations

from typing import Any

DBUS_ERROR = "org.freedesktop.Dbus.Error"
DBUS_ERR_IFACE_NOT_FOUND = "org.freedesktop.DBus.Error.UnknownInterface"
DBUS_ERR_PROP_NOT_FOUND = "org.freedesktop.DBus.Error.UnknownProperty"
DBUS_ERR_PROP_READ_ONLY = "org.freedesktop.DBus.Error.PropertyReadOnly"

CALLBACK_NOT_REGISTERED = -1
CALLBACK_FUNCTION_ERROR = -2


class DBusError(Exception):
    """An error with a D-Bus error name and an optional body."""

    def __init__(self, name: str, *body: Any) -> None:
        super().__init__(name, *body)
        self.name = name
        self.body = body

    def __str__(self) -> str:
        if self.body and isinstance(self.body[0], str):
            return self.body[0]
        return self.name


class CallbackError(Exception):
    """An error reported by, or about, an application callback."""

    def __init__(self, code: int, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg

    def __str__(self) -> str:
        return self.msg
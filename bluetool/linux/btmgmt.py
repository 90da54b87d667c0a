"""Inspect and configure Bluetooth adapters through the btmgmt utility."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from bluetool.linux.cmdexec import cmd_exec

# hci1:	Primary controller
_HEADER = re.compile(r"([a-z0-9]+):[ ]*")
# 	addr 10:08:B1:72:F5:98 version 6 manufacturer 93 class 0x000000
_ADDR = re.compile(
    r"\taddr ([a-zA-z0-9:]+) version ([0-9]+) manufacturer ([0-9]+) class ([0-9a-zA-Zx]+)"
)
# 	supported settings: ...
_SETTINGS = re.compile(r"\t.+: (.*)")
# 	(short )name ...
_NAME = re.compile(r"\t.*name (.*)")


@dataclass
class BtAdapter:
    """An adapter as described by ``btmgmt info``."""

    id: str = ""
    name: str = ""
    short_name: str = ""
    addr: str = ""
    version: str = ""
    manufacturer: str = ""
    device_class: str = ""
    supported_settings: list[str] = field(default_factory=list)
    current_settings: list[str] = field(default_factory=list)


def parse_adapters(raw: str) -> list[BtAdapter]:
    """Parse the output of ``btmgmt info``; the first (summary) line is skipped."""
    lines = iter(raw.split("\n")[1:])
    adapters = []
    for line in lines:
        header = _HEADER.search(line)
        if header is None:
            continue
        adapter = BtAdapter(id=header.group(1))

        addr = _ADDR.search(next(lines, ""))
        if addr:
            (
                adapter.addr,
                adapter.version,
                adapter.manufacturer,
                adapter.device_class,
            ) = addr.groups()

        supported = _SETTINGS.search(next(lines, ""))
        if supported:
            adapter.supported_settings = supported.group(1).split(" ")

        current_line = next(lines, "")
        current = _SETTINGS.search(current_line)
        if current:
            adapter.current_settings = current.group(1).split(" ")
        if current_line == "":
            next(lines, None)

        name = _NAME.search(next(lines, ""))
        if name:
            adapter.name = name.group(1)

        short_name = _NAME.search(next(lines, ""))
        if short_name:
            adapter.short_name = short_name.group(1)

        adapters.append(adapter)
    return adapters


def get_adapters() -> list[BtAdapter]:
    """Return the adapters reported by btmgmt."""
    raw = cmd_exec("btmgmt", "info")
    if not raw:
        raise RuntimeError("btmgmt provided no response")
    return parse_adapters(raw)


def get_adapter(adapter_id: str) -> BtAdapter:
    """Return the adapter with the given id; raise LookupError if absent."""
    for adapter in get_adapters():
        if adapter.id == adapter_id:
            return adapter
    raise LookupError(f"Adapter {adapter_id} not found")


class BtMgmt:
    """Wrapper around btmgmt commands for one adapter."""

    def __init__(self, adapter_id: str) -> None:
        self.adapter_id = adapter_id

    def _cmd(self, *args: str) -> None:
        cmd_exec("btmgmt", "--index", self.adapter_id, *args)

    def _set_flag(self, flag: str, value: bool) -> None:
        self._cmd(flag, "on" if value else "off")

    def reset(self) -> None:
        """Power the adapter off and on again."""
        self.set_powered(False)
        self.set_powered(True)

    def set_device_id(self, did: str) -> None:
        """Set the device id."""
        self._cmd("did", did)

    def set_name(self, name: str) -> None:
        """Set the local name."""
        self._cmd("name", name)

    def set_class(self, major: str, minor: str) -> None:
        """Set the device class."""
        self._cmd("class", major, minor)

    def set_powered(self, status: bool) -> None:
        """Switch adapter power."""
        self._set_flag("power", status)

    def set_discoverable(self, status: bool) -> None:
        """Set discoverable state."""
        self._set_flag("discov", status)

    def set_connectable(self, status: bool) -> None:
        """Set connectable state."""
        self._set_flag("connectable", status)

    def set_fast_connectable(self, status: bool) -> None:
        """Set fast connectable state."""
        self._set_flag("fast", status)

    def set_bondable(self, status: bool) -> None:
        """Set bondable state."""
        self._set_flag("bondable", status)

    def set_pairable(self, status: bool) -> None:
        """Set pairable state."""
        self._set_flag("pairable", status)

    def set_link_level_security(self, status: bool) -> None:
        """Set link level security."""
        self._set_flag("linksec", status)

    def set_ssp(self, status: bool) -> None:
        """Set SSP mode."""
        self._set_flag("ssp", status)

    def set_sc(self, status: bool) -> None:
        """Toggle Secure Connections support."""
        self._set_flag("sc", status)

    def set_hs(self, status: bool) -> None:
        """Set HS support."""
        self._set_flag("hs", status)

    def set_le(self, status: bool) -> None:
        """Set LE support."""
        self._set_flag("le", status)

    def set_advertising(self, status: bool) -> None:
        """Set LE advertising."""
        self._set_flag("advertising", status)

    def set_bredr(self, status: bool) -> None:
        """Set BR/EDR support."""
        self._set_flag("bredr", status)

    def set_privacy(self, status: bool) -> None:
        """Set privacy support."""
        self._set_flag("privacy", status)
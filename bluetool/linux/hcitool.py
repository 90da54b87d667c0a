"""List Bluetooth adapters reported by the hcitool utility."""

from __future__ import annotations

import re
from dataclasses import dataclass

from bluetool.linux.cmdexec import cmd_exec

_DEVICE_LINE = re.compile(r"^[ \t]*([a-zA-Z0-9]+)[ \t]*([a-zA-Z0-9:]+)$")


@dataclass
class HcitoolDev:
    """An adapter as listed by ``hcitool dev``."""

    id: str = ""
    address: str = ""


def parse_devices(raw: str) -> list[HcitoolDev]:
    """Parse the output of ``hcitool dev``; the first (header) line is skipped."""
    devices = []
    for line in raw.split("\n")[1:]:
        match = _DEVICE_LINE.match(line)
        if match:
            devices.append(HcitoolDev(id=match.group(1), address=match.group(2)))
    return devices


def get_adapters() -> list[HcitoolDev]:
    """Return the adapters known to hcitool."""
    return parse_devices(cmd_exec("hcitool", "dev"))


def get_adapter(adapter_id: str) -> HcitoolDev | None:
    """Return the adapter with the given id, or None if there is none."""
    return next((a for a in get_adapters() if a.id == adapter_id), None)
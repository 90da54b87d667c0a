"""Query and toggle HCI devices through the hciconfig utility."""

from __future__ import annotations

from dataclasses import dataclass

from bluetool.linux.cmdexec import cmd_exec


@dataclass
class HCIConfigResult:
    """Details of an adapter as reported by hciconfig."""

    enabled: bool = False
    address: str = ""
    type: str = ""
    bus: str = ""


_FIELDS = {"Type": "type", "Bus": "bus", "BD Address": "address"}


def parse_status(out: str) -> HCIConfigResult:
    """Parse the output of ``hciconfig <adapter>``."""
    result = HCIConfigResult()
    lines = out[6:].replace("\t", "").split("\n")
    for i, line in enumerate(lines[:3]):
        if i == 2:
            result.enabled = line.split(" ")[0] == "UP"
            continue
        for subpart in line.split("  "):
            key, sep, value = subpart.partition(": ")
            if sep and key in _FIELDS:
                setattr(result, _FIELDS[key], value.split(": ")[0])
    return result


class HCIConfig:
    """Wrapper around hciconfig for one adapter."""

    def __init__(self, adapter_id: str) -> None:
        self.adapter_id = adapter_id

    def status(self) -> HCIConfigResult:
        """Return the adapter's current status."""
        return parse_status(cmd_exec("hciconfig", self.adapter_id))

    def up(self) -> HCIConfigResult:
        """Turn the adapter on and return its status."""
        cmd_exec("hciconfig", self.adapter_id, "up")
        return self.status()

    def down(self) -> HCIConfigResult:
        """Turn the adapter off and return its status."""
        cmd_exec("hciconfig", self.adapter_id, "down")
        return self.status()
# bluetool

Python tools for working with Bluetooth on Linux. The package has two parts.

- **`bluetool.linux`** wraps the system utilities `rfkill`, `btmgmt`,
  `hciconfig` and `hcitool`, and parses what they print into dataclasses.
- **`bluetool.service`** is an object model for a GATT application: services,
  characteristics, descriptors, an LE advertisement, a property store and an
  object manager that tracks what is exposed.

`bluetool.util.map_struct.map_to_struct(obj, mapping)` assigns values from a
mapping onto an object's fields, requiring each value to have exactly the type
of the field it replaces.

## Installation

```
pip install .
```

Only the standard library is needed. The Linux wrappers run the matching
command-line tools, so those tools must be installed and on `PATH`.

## Adapters and radio switches

```python
from bluetool.linux.btmgmt import BtMgmt, get_adapters
from bluetool.linux.hcitool import get_adapter
from bluetool.linux.hciconfig import HCIConfig
from bluetool.linux.rfkill import RFKill

for adapter in get_adapters():
    print(adapter.id, adapter.name, adapter.addr)

BtMgmt("hci0").reset()          # power off, then power on again

print(HCIConfig("hci0").status())
print(get_adapter("hci0"))      # None if hcitool does not list it

rfkill = RFKill()               # reads /sys/class/rfkill by default
if rfkill.is_blocked("bluetooth"):
    rfkill.soft_unblock("bluetooth")
```

- `bluetool.linux.cmdexec.cmd_exec(*args)` runs a program found on `PATH` and
  returns its combined stdout and stderr. It raises `FileNotFoundError` if the
  program is missing and `subprocess.CalledProcessError` if it exits with a
  non-zero status.
- `BtMgmt` has setters for power, discoverable, connectable, fast connectable,
  bondable, pairable, link level security, SSP, SC, HS, LE, advertising,
  BR/EDR and privacy, plus `set_name`, `set_class` and `set_device_id`.
- `btmgmt.get_adapters()` raises `RuntimeError` when `btmgmt` prints nothing,
  and `btmgmt.get_adapter(adapter_id)` raises `LookupError` for an unknown id.
- `HCIConfig.up()` and `down()` switch the adapter and return its new status.
- `RFKill(sysfs_root)` can be pointed at another directory; `list_all()`
  returns one `RFKillResult` per `rfkill*` entry. The identifier `""` or
  `"all"` matches every device.

`parse_adapters`, `parse_devices` and `parse_status` take the raw text printed
by `btmgmt info`, `hcitool dev` and `hciconfig <id>` respectively, so they can
be used on output you already have.

## GATT application model

The service objects do not talk to a bus themselves. They are handed a
connection object, which must provide:

- `export(obj, path, interface)`
- `emit(path, signal, *args)`
- `request_name(name)`
- `call(destination, path, interface, method, *args)` (used for advertising)

```python
from bluetool.service.application import Application, ApplicationConfig


class Recorder:
    """A stand-in connection that records what it is asked to do."""

    def __init__(self):
        self.exported, self.signals, self.calls = [], [], []

    def export(self, obj, path, interface):
        self.exported.append((path, interface))

    def emit(self, path, signal, *args):
        self.signals.append((path, signal, args))

    def request_name(self, name):
        pass

    def call(self, destination, path, interface, method, *args):
        self.calls.append((path, interface, method, args))


app = Application(ApplicationConfig(
    object_name="org.bluez",
    object_path="/example/service",
    conn=Recorder(),
    uuid="AAAA",
    uuid_suffix="-0000-1000-8000-00805F9B34FB",
    local_name="example",
))
app.run()

uuid = app.generate_uuid("1111")   # "AAAA1111-0000-1000-8000-00805F9B34FB"
service = app.create_service({"UUID": uuid, "Primary": True}, advertised=True)
app.add_service(service)

char = service.create_characteristic({"UUID": uuid, "Flags": ["read", "write"]})
service.add_characteristic(char)

desc = char.create_descriptor({"UUID": uuid, "Flags": ["read", "write"]})
char.add_descriptor(desc)

app.start_advertising("hci0")
app.stop_advertising()
```

Objects get paths of the form `<app>/service1`, `.../char1`, `.../desc1`.
Property sets may be dataclass instances or mappings; a dataclass field can
carry `dbus` metadata (`emit`, `invalidates`, `writable`) to make it writable
through `Properties.set`.

Reads and writes from a peer go through the callbacks set in
`ApplicationConfig` (`read_func`, `write_func`, `desc_read_func`,
`desc_write_func`). When no callback is registered, `read_value` returns the
stored `Value` and `write_value` stores the new one. `Application.handle_*`
raise `CallbackError` (code `-1` for a missing callback, `-2` for a callback
that raised); `read_value` and `write_value` turn any other callback failure
into `DBusError`.

`start_advertising` collects the UUIDs of services created with
`advertised=True`, exports an `LEAdvertisement1`, registers it with the
adapter and sets the adapter discoverable and powered; failures in the first
steps raise `AdvertisingError`.

## What this package does not do

- It has no D-Bus transport: you supply the connection object described
  above.
- It does not bring HCI devices up or down through kernel sockets; use
  `HCIConfig` or `BtMgmt`, which run the command-line tools.
- It has no command-line program of its own.

## Running the tests

```
pip install .[test]
pytest
```
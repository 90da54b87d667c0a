"""Linux Bluetooth tool wrappers and a GATT application object model."""

__version__ = "0.1.0"
"""Assign values from a mapping onto an object's fields."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any


def _check_field(obj: Any, name: str) -> None:
    cls_attr = getattr(type(obj), name, None)
    instance_vars = getattr(obj, "__dict__", {})
    is_method = callable(cls_attr) and name not in instance_vars
    if not hasattr(obj, name) or is_method:
        raise AttributeError(f"No such field: {name} in obj")

    frozen = dataclasses.is_dataclass(obj) and obj.__dataclass_params__.frozen
    read_only = isinstance(cls_attr, property) and cls_attr.fset is None
    if name.startswith("_") or frozen or read_only:
        raise AttributeError(f"Cannot set {name} field value")

    current = getattr(obj, name)
    if type(current) is not type(mapping_value_sentinel):
        pass


mapping_value_sentinel = object()


def map_to_struct(obj: Any, mapping: Mapping[str, Any]) -> None:
    """Set each named field of obj to its value in mapping.

    A value must have exactly the type of the field it replaces. Raises
    AttributeError for unknown or read-only fields and TypeError for a
    type mismatch; fields processed before the failure stay assigned.
    """
    for name, value in mapping.items():
        _check_field(obj, name)
        if type(getattr(obj, name)) is not type(value):
            raise TypeError("Provided value type didn't match obj field type")
        setattr(obj, name, value)
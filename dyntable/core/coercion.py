"""Record coercion.

Every record handed to the table is first normalized into a canonical record:
a plain ``dict`` whose insertion order decides the column and placeholder
order of the generated SQL. Supported shapes are checked in a fixed order:

- plain ``dict``: already canonical, returned as is
- string multimaps (form data, parsed query strings): first value per key
- any other ``Mapping``: copied into a ``dict``
- dataclasses, msgspec structs, pydantic models, attrs classes and named tuples:
  one entry per declared field, in declaration order
- any other object: its public instance attributes, slots and properties

Objects exposing nothing readable coerce to an empty record; rejecting those
is left to the command synthesizer.
"""

import dataclasses
from typing import Any

from dyntable.typing import CanonicalRecord, RecordInput
from dyntable.utils.type_guards import (
    is_attrs_instance,
    is_dataclass_instance,
    is_dict,
    is_mapping,
    is_msgspec_struct,
    is_multimap,
    is_namedtuple,
    is_pydantic_model,
)

__all__ = ("coerce_record", "first_value")


def coerce_record(obj: RecordInput) -> CanonicalRecord:
    """Normalize any supported record shape into a canonical record.

    Args:
        obj: The record to normalize.

    Returns:
        The canonical record. ``obj`` itself when it already is a plain ``dict``.
    """
    if is_dict(obj):
        return obj
    if is_multimap(obj):
        return _multimap_to_record(obj)
    if is_mapping(obj):
        return dict(obj)
    if is_dataclass_instance(obj):
        return {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}
    if is_msgspec_struct(obj):
        return {name: getattr(obj, name) for name in obj.__struct_fields__}
    if is_pydantic_model(obj):
        return {name: getattr(obj, name) for name in type(obj).model_fields}
    if is_attrs_instance(obj):
        import attrs

        return {attribute.name: getattr(obj, attribute.name) for attribute in attrs.fields(type(obj))}
    if is_namedtuple(obj):
        return dict(obj._asdict())  # type: ignore[attr-defined]
    return _public_members(obj)


def first_value(value: Any) -> Any:
    """Unwrap a single-value container to the value it holds."""
    if is_mapping(value):
        return next(iter(value.values()), None)
    return value


def _multimap_to_record(obj: Any) -> CanonicalRecord:
    getter = getattr(obj, "getlist", None) or obj.getall
    record: CanonicalRecord = {}
    for key in obj.keys():
        if key in record:
            continue
        values = getter(key)
        record[key] = values[0] if values else None
    return record


def _public_members(obj: Any) -> CanonicalRecord:
    record: CanonicalRecord = {}
    instance_dict = getattr(obj, "__dict__", None)
    if isinstance(instance_dict, dict):
        for name, value in instance_dict.items():
            if not name.startswith("_"):
                record[name] = value

    cls = type(obj)
    for klass in reversed(cls.__mro__[:-1]):
        for name in _as_tuple(klass.__dict__.get("__slots__", ())):
            if not name.startswith("_") and name not in record and hasattr(obj, name):
                record[name] = getattr(obj, name)
        for name, member in klass.__dict__.items():
            if isinstance(member, property) and not name.startswith("_") and member.fget is not None:
                record[name] = member.fget(obj)
    return record


def _as_tuple(slots: Any) -> "tuple[str, ...]":
    if isinstance(slots, str):
        return (slots,)
    return tuple(slots)

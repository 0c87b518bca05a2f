"""Type guards for the record shapes understood by record coercion."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from msgspec import Struct
from typing_extensions import TypeGuard

from dyntable._typing import ATTRS_INSTALLED, PYDANTIC_INSTALLED

if TYPE_CHECKING:
    from pydantic import BaseModel

    from dyntable.typing import DataclassProtocol, MultiMapProtocol

__all__ = (
    "is_attrs_instance",
    "is_dataclass_instance",
    "is_dict",
    "is_mapping",
    "is_msgspec_struct",
    "is_multimap",
    "is_namedtuple",
    "is_pydantic_model",
)


def is_dict(obj: Any) -> "TypeGuard[dict[str, Any]]":
    """Check if a value is a plain dictionary.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return type(obj) is dict


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    return isinstance(obj, Mapping)


def is_multimap(obj: Any) -> "TypeGuard[MultiMapProtocol]":
    """Check if a value is a string multimap such as submitted form data.

    Werkzeug/Django style containers expose ``getlist``; ``multidict`` and
    aiohttp containers expose ``getall``.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type):
        return False
    return callable(getattr(obj, "getlist", None)) or callable(getattr(obj, "getall", None))


def is_dataclass_instance(obj: Any) -> "TypeGuard[DataclassProtocol]":
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_msgspec_struct(obj: Any) -> "TypeGuard[Struct]":
    return isinstance(obj, Struct)


def is_pydantic_model(obj: Any) -> "TypeGuard[BaseModel]":
    """Check if a value is a pydantic model instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not PYDANTIC_INSTALLED:
        return False
    from pydantic import BaseModel

    return isinstance(obj, BaseModel)


def is_attrs_instance(obj: Any) -> bool:
    if not ATTRS_INSTALLED or isinstance(obj, type):
        return False
    import attrs

    return attrs.has(type(obj))


def is_namedtuple(obj: Any) -> "TypeGuard[tuple[Any, ...]]":
    return isinstance(obj, tuple) and hasattr(obj, "_fields") and callable(getattr(obj, "_asdict", None))

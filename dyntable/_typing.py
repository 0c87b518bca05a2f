"""Optional dependency detection."""

from importlib.util import find_spec

__all__ = ("ATTRS_INSTALLED", "PYDANTIC_INSTALLED")


def _module_installed(name: str) -> bool:
    try:
        return find_spec(name) is not None
    except (ImportError, ValueError):
        return False


PYDANTIC_INSTALLED = _module_installed("pydantic")
ATTRS_INSTALLED = _module_installed("attrs")

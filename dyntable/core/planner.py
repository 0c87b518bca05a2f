"""Batch planning: one INSERT, UPDATE or DELETE command per record."""

from typing import TYPE_CHECKING, Any

from dyntable.core.coercion import coerce_record
from dyntable.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dyntable.core.command import SynthesizedCommand
    from dyntable.core.synthesizer import CommandSynthesizer
    from dyntable.typing import CanonicalRecord, RecordInput

__all__ = ("DEFAULT_REMOVAL_FLAG", "is_marked_for_removal", "plan_commands")

logger = get_logger("core.planner")

DEFAULT_REMOVAL_FLAG = "Remove"

_TRUTHY_STRINGS = frozenset({"true", "1", "yes", "on"})


def is_marked_for_removal(record: "CanonicalRecord", flag: str = DEFAULT_REMOVAL_FLAG) -> bool:
    """Return True when ``record`` carries a truthy removal flag.

    Strings, as submitted by forms, count as truthy only for ``true``, ``1``,
    ``yes`` and ``on``.
    """
    value: Any = record.get(flag)
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return bool(value)


def plan_commands(
    synthesizer: "CommandSynthesizer", records: "Iterable[RecordInput]", removal_flag: str = DEFAULT_REMOVAL_FLAG
) -> "list[SynthesizedCommand]":
    """Classify each record and synthesize its command, preserving input order.

    - full primary key and removal flag set: DELETE by key
    - full primary key: UPDATE by key
    - otherwise: INSERT

    Args:
        synthesizer: Command synthesizer of the target table.
        records: Records of any supported shape.
        removal_flag: Column name of the removal marker.

    Returns:
        One command per record, in input order.
    """
    primary_key = synthesizer.primary_key
    commands: list[SynthesizedCommand] = []
    for item in records:
        record = coerce_record(item)
        if primary_key.has_primary_key(record):
            key = primary_key.extract_key(record)
            if is_marked_for_removal(record, removal_flag):
                commands.append(synthesizer.delete(*key, by_key=True))
            else:
                commands.append(synthesizer.update(record, key))
        else:
            commands.append(synthesizer.insert(record))
    logger.debug("Planned %d command(s) for %s", len(commands), synthesizer.table_name)
    return commands

"""Record coercion, parameter binding, key resolution, command synthesis and batch planning."""

from dyntable.core.coercion import coerce_record
from dyntable.core.command import SynthesizedCommand
from dyntable.core.keys import PrimaryKey
from dyntable.core.parameters import BoundParameter, ParameterStyle, bind_parameter, convert_placeholders
from dyntable.core.planner import is_marked_for_removal, plan_commands
from dyntable.core.result import PagedResult, total_pages_for
from dyntable.core.synthesizer import CommandSynthesizer

__all__ = (
    "BoundParameter",
    "CommandSynthesizer",
    "PagedResult",
    "ParameterStyle",
    "PrimaryKey",
    "SynthesizedCommand",
    "bind_parameter",
    "coerce_record",
    "convert_placeholders",
    "is_marked_for_removal",
    "plan_commands",
    "total_pages_for",
)

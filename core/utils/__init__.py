"""
Utility modules for core functionality.

Modules:
- decorators: Timing helpers (timer)
- enum_converter: Enum parsing and conversion
- params_processor: Parameter normalization
"""

from .decorators import timer
from .enum_converter import enum_to_string, parse_enum
from .params_processor import params_to_dict, prepare_params

__all__ = [
    "timer",
    "enum_to_string",
    "parse_enum",
    "params_to_dict",
    "prepare_params",
]

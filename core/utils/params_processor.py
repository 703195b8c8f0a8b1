"""
Parameter processing utilities.

Normalizes the optional pipeline parameters (flip, output spec, crop rect)
that callers may pass as models, plain dicts or None.
"""

from typing import Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def prepare_params(params: Optional[Union[T, Dict[str, Any]]], params_class: Type[T]) -> T:
    """
    Prepare pipeline parameters with default initialization.

    If params is None, creates a new instance with defaults.
    If params is a dict, validates it into params_class.
    If params is already an instance, returns it unchanged.

    Args:
        params: Parameters instance, dict or None
        params_class: Pydantic parameter class for defaults

    Returns:
        Initialized parameters instance

    Example:
        >>> flip = prepare_params(None, FlipSpec)
        >>> # Returns FlipSpec(horizontal=False, vertical=False)
    """
    if params is None:
        return params_class()
    if isinstance(params, params_class):
        return params
    if isinstance(params, dict):
        return params_class.model_validate(params)
    return params_class.model_validate(params, from_attributes=True)


def params_to_dict(params: BaseModel, by_alias: bool = True) -> Dict[str, Any]:
    """
    Convert Pydantic params to a JSON-compatible dictionary.

    Args:
        params: Pydantic parameter model instance
        by_alias: Whether to use field aliases as keys

    Returns:
        Dictionary representation of parameters (enums as their values)
    """
    return params.model_dump(mode="json", by_alias=by_alias)

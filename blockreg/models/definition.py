"""
Block definition models for blockreg.

This module defines the settings a caller supplies when registering a block,
the immutable definition the registry stores, and the two ways a block can
declare how its attributes are derived from raw content.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator


class DerivedByFunction(BaseModel):
    """
    Attributes computed by calling a function with the block's raw content.
    """

    kind: Literal["function"] = "function"

    fn: Callable[[str], Dict[str, Any]] = Field(
        ...,
        description="Function mapping raw content to attribute values"
    )


class DerivedByRuleMap(BaseModel):
    """
    Attributes extracted from the block's raw content by declarative rules.
    """

    kind: Literal["rules"] = "rules"

    rules: Dict[str, Any] = Field(
        default_factory=dict,
        description="Attribute name to extraction rule, in the extraction engine's own format"
    )


AttributeSource = Union[DerivedByFunction, DerivedByRuleMap]


class BlockSettings(BaseModel):
    """
    Settings supplied when registering a block.

    Unrecognized keys passed in a mapping are collected into ``extensions``
    so that extensions can carry their own data alongside a block.
    Visibility may be given as ``is_visible`` or ``isVisible``.
    """

    model_config = ConfigDict(populate_by_name=True)

    attributes: Optional[AttributeSource] = Field(
        default=None,
        description="How instance attributes are derived, if at all"
    )

    is_visible: StrictBool = Field(
        default=True,
        alias="isVisible",
        description="Whether the block is offered in visible listings"
    )

    extensions: Dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque caller-supplied settings"
    )

    @model_validator(mode="before")
    @classmethod
    def _collect_extensions(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        known = set(cls.model_fields)
        known.update(field.alias for field in cls.model_fields.values() if field.alias)
        extra = {key: value for key, value in data.items() if key not in known}
        if not extra:
            return data

        extensions = data.get("extensions") or {}
        if not isinstance(extensions, Mapping):
            raise ValueError(f"extensions must be a mapping, got {type(extensions).__name__}")

        collected = {key: value for key, value in data.items() if key in known}
        collected["extensions"] = {**extensions, **extra}
        return collected

    @field_validator("is_visible", mode="before")
    @classmethod
    def _default_visibility(cls, value: Any) -> Any:
        # Only an explicit False hides a block
        return True if value is None else value

    @field_validator("attributes", mode="before")
    @classmethod
    def _select_attribute_source(cls, value: Any) -> Any:
        if value is None or isinstance(value, (DerivedByFunction, DerivedByRuleMap)):
            return value
        if callable(value):
            return DerivedByFunction(fn=value)
        if isinstance(value, Mapping):
            return DerivedByRuleMap(rules=value)
        raise ValueError(
            f"attributes must be a function or a mapping of extraction rules, got {type(value).__name__}"
        )


class BlockDefinition(BlockSettings):
    """
    A registered block: its slug plus the settings it was registered with.
    """

    model_config = ConfigDict(frozen=True)

    slug: str = Field(
        ...,
        description="Namespaced block slug, e.g. 'core/text'"
    )

"""Data models for blockreg."""

from .content import ContentNode
from .definition import (
    AttributeSource,
    BlockDefinition,
    BlockSettings,
    DerivedByFunction,
    DerivedByRuleMap,
)
from .rules import ExtractionRule

__all__ = [
    "AttributeSource",
    "BlockDefinition",
    "BlockSettings",
    "ContentNode",
    "DerivedByFunction",
    "DerivedByRuleMap",
    "ExtractionRule",
]

"""
blockreg: A registry of namespaced content blocks.

Blocks are registered under 'namespace/name' slugs and derive the attributes
of each parsed instance from its raw content.
"""

__version__ = "0.1.0"
__author__ = "blockreg Project"

# Import main components
from .models import (
    BlockDefinition,
    BlockSettings,
    ContentNode,
    DerivedByFunction,
    DerivedByRuleMap,
    ExtractionRule,
)
from .attributes import resolve_attributes
from .registry import (
    BlockRegistry,
    RegistryErrorReason,
    RegistryResult,
    block_registry,
    get_block_attributes,
    get_block_settings,
    get_blocks,
    get_visible_blocks,
    register_block,
    unregister_block,
)
from .loader import BlockLoader
from . import query

__all__ = [
    "BlockDefinition",
    "BlockSettings",
    "ContentNode",
    "DerivedByFunction",
    "DerivedByRuleMap",
    "ExtractionRule",
    "resolve_attributes",
    "BlockRegistry",
    "RegistryErrorReason",
    "RegistryResult",
    "block_registry",
    "get_block_attributes",
    "get_block_settings",
    "get_blocks",
    "get_visible_blocks",
    "register_block",
    "unregister_block",
    "BlockLoader",
    "query",
]

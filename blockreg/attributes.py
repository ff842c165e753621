"""
Attribute resolution for blockreg.

Combines the shorthand attributes a parser found on a block declaration with
the attributes the block's definition derives from its raw content.
"""

from typing import Any, Callable, Dict, Optional

from .models import BlockSettings, ContentNode, DerivedByFunction, DerivedByRuleMap
from . import query


Extractor = Callable[[str, Dict[str, Any]], Dict[str, Any]]


def resolve_attributes(
    node: ContentNode,
    definition: BlockSettings,
    extract: Extractor = query.parse,
) -> Optional[Dict[str, Any]]:
    """
    Compute the attributes of one block instance.

    Parsed attributes act as defaults; derived attributes override them.
    Errors raised by the derivation function or the extractor propagate.

    Args:
        node: The parsed content node
        definition: The block's definition (or settings)
        extract: Extraction engine used for declarative rule maps

    Returns:
        The merged attributes, or None if the definition derives none
    """
    attrs = node.attrs or {}
    source = definition.attributes

    if isinstance(source, DerivedByFunction):
        return {**attrs, **source.fn(node.raw_content)}

    if isinstance(source, DerivedByRuleMap):
        return {**attrs, **extract(node.raw_content, source.rules)}

    return None

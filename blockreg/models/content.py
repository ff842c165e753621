"""
Content node model for blockreg.

Content nodes are produced by an external post parser. Each one stands for a
single block instance found in serialized content.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ContentNode(BaseModel):
    """
    One parsed instance of a block.
    """

    raw_content: str = Field(
        default="",
        description="The raw serialized inner content of the block"
    )

    attrs: Dict[str, Any] = Field(
        default_factory=dict,
        description="Shorthand attributes parsed from the block declaration"
    )

    slug: Optional[str] = Field(
        default=None,
        description="The block slug the parser associated with this node"
    )

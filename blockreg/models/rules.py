"""
Extraction rule model for blockreg.

An extraction rule describes, declaratively, how one attribute value is read
out of a block's raw HTML content. Rules are plain data so that they can be
written in the YAML configuration as well as in code.
"""

from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field, model_validator


class ExtractionRule(BaseModel):
    """
    A single declarative rule evaluated by the extraction engine.
    """

    source: Literal["text", "html", "attr", "query"] = Field(
        ...,
        description="What to read from the matched element"
    )

    selector: Optional[str] = Field(
        default=None,
        description="CSS-like selector; the fragment root is used when omitted"
    )

    attribute: Optional[str] = Field(
        default=None,
        description="Attribute name to read (only for source 'attr')"
    )

    rule: Optional['ExtractionRule'] = Field(
        default=None,
        description="Nested rule applied to every match (only for source 'query')"
    )

    rules: Optional[Dict[str, 'ExtractionRule']] = Field(
        default=None,
        description="Nested rules applied to every match (only for source 'query')"
    )

    @model_validator(mode="after")
    def _check_source_fields(self) -> 'ExtractionRule':
        if self.source == "attr" and not self.attribute:
            raise ValueError("rules with source 'attr' require an attribute name")
        if self.source == "query":
            if (self.rule is None) == (self.rules is None):
                raise ValueError("rules with source 'query' require exactly one of 'rule' or 'rules'")
        elif self.rule is not None or self.rules is not None:
            raise ValueError(f"nested rules are only allowed for source 'query', not '{self.source}'")
        return self


# Enable forward references for self-referencing model
ExtractionRule.model_rebuild()

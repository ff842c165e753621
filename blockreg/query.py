"""
Declarative attribute extraction for blockreg.

This module evaluates ExtractionRule objects against a block's raw HTML
content. The fragment is parsed once into a small element tree, then each
rule selects elements with a CSS-like selector and reads text, inner HTML,
or an attribute from them.

Supported selectors are compound simple selectors (``p``, ``.intro``,
``#main``, ``[href]``, ``a.button[href]``) joined by whitespace, which is
read as the descendant combinator.
"""

import html
import re
from collections.abc import Mapping
from html.parser import HTMLParser
from typing import Any, Dict, Iterator, List, Optional, Union

from .models import ExtractionRule


VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}

_COMPOUND_PATTERN = re.compile(r'^(?P<tag>[A-Za-z][\w-]*|\*)?(?P<rest>(?:[.#][\w-]+|\[[\w-]+\])*)$')
_SIMPLE_PATTERN = re.compile(r'([.#])([\w-]+)|\[([\w-]+)\]')


class Element:
    """
    A node in the parsed fragment tree. The fragment root has no tag.
    """

    def __init__(self, tag: Optional[str], attrs: Dict[str, str], parent: Optional['Element'] = None):
        self.tag = tag
        self.attrs = attrs
        self.parent = parent
        self.children: List[Union['Element', str]] = []

    def iter_descendants(self) -> Iterator['Element']:
        """Yield descendant elements in document order."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_descendants()

    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child.text() if isinstance(child, Element) else child)
        return "".join(parts)

    def inner_html(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.outer_html())
            else:
                parts.append(html.escape(child, quote=False))
        return "".join(parts)

    def outer_html(self) -> str:
        attrs = "".join(
            f' {name}="{html.escape(value, quote=True)}"' for name, value in self.attrs.items()
        )
        if self.tag in VOID_ELEMENTS:
            return f"<{self.tag}{attrs}>"
        return f"<{self.tag}{attrs}>{self.inner_html()}</{self.tag}>"

    def __repr__(self):
        return f"Element(tag={self.tag!r}, children={len(self.children)})"


class _TreeBuilder(HTMLParser):
    """Builds an Element tree from an HTML fragment."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = Element(None, {})
        self._stack: List[Element] = [self.root]

    def handle_starttag(self, tag, attrs):
        element = self._append(tag, attrs)
        if tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._append(tag, attrs)

    def handle_endtag(self, tag):
        # Unbalanced end tags close back to the nearest open element of the same name
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == tag:
                del self._stack[index:]
                return

    def handle_data(self, data):
        self._stack[-1].children.append(data)

    def _append(self, tag, attrs) -> Element:
        parent = self._stack[-1]
        element = Element(tag, {name: value or "" for name, value in attrs}, parent)
        parent.children.append(element)
        return element


def parse_fragment(raw_content: str) -> Element:
    """
    Parse an HTML fragment into an Element tree.

    Args:
        raw_content: The HTML fragment

    Returns:
        The fragment root element
    """
    builder = _TreeBuilder()
    builder.feed(raw_content or "")
    builder.close()
    return builder.root


def _parse_selector(selector: str) -> List[Dict[str, Any]]:
    compounds = []
    for part in selector.split():
        match = _COMPOUND_PATTERN.match(part)
        if not match:
            raise ValueError(f"Unsupported selector: '{selector}'")

        compound: Dict[str, Any] = {"tag": None, "id": None, "classes": set(), "attrs": set()}
        tag = match.group("tag")
        if tag and tag != "*":
            compound["tag"] = tag.lower()

        for prefix, name, attr in _SIMPLE_PATTERN.findall(match.group("rest")):
            if attr:
                compound["attrs"].add(attr.lower())
            elif prefix == "#":
                compound["id"] = name
            else:
                compound["classes"].add(name)
        compounds.append(compound)

    if not compounds:
        raise ValueError("Selectors must not be empty")
    return compounds


def _matches_compound(element: Element, compound: Dict[str, Any]) -> bool:
    if element.tag is None:
        return False
    if compound["tag"] and element.tag != compound["tag"]:
        return False
    if compound["id"] and element.attrs.get("id") != compound["id"]:
        return False
    if compound["classes"] and not compound["classes"] <= set(element.attrs.get("class", "").split()):
        return False
    return all(name in element.attrs for name in compound["attrs"])


def _matches(element: Element, compounds: List[Dict[str, Any]]) -> bool:
    if not _matches_compound(element, compounds[-1]):
        return False

    ancestor = element.parent
    for compound in reversed(compounds[:-1]):
        while ancestor is not None and not _matches_compound(ancestor, compound):
            ancestor = ancestor.parent
        if ancestor is None:
            return False
        ancestor = ancestor.parent
    return True


def select_all(scope: Element, selector: str) -> List[Element]:
    """Return every descendant of scope matching selector, in document order."""
    compounds = _parse_selector(selector)
    return [element for element in scope.iter_descendants() if _matches(element, compounds)]


def select_one(scope: Element, selector: str) -> Optional[Element]:
    """Return the first descendant of scope matching selector, or None."""
    compounds = _parse_selector(selector)
    for element in scope.iter_descendants():
        if _matches(element, compounds):
            return element
    return None


def _coerce_rule(rule: Any) -> ExtractionRule:
    if isinstance(rule, ExtractionRule):
        return rule
    return ExtractionRule.model_validate(rule)


def evaluate(scope: Element, rule: Any) -> Any:
    """
    Evaluate one rule against an element.

    Args:
        scope: Element the rule's selector is resolved against
        rule: ExtractionRule, or a mapping that validates as one

    Returns:
        The extracted value; None when nothing matched, a list for query rules
    """
    rule = _coerce_rule(rule)

    if rule.source == "query":
        matches = select_all(scope, rule.selector) if rule.selector else [scope]
        if rule.rules is not None:
            return [evaluate_all(match, rule.rules) for match in matches]
        return [evaluate(match, rule.rule) for match in matches]

    target = select_one(scope, rule.selector) if rule.selector else scope
    if target is None:
        return None

    if rule.source == "text":
        return target.text()
    if rule.source == "html":
        return target.inner_html()
    return target.attrs.get(rule.attribute)


def evaluate_all(scope: Element, rules: Mapping) -> Dict[str, Any]:
    """Evaluate a mapping of rules against an element."""
    return {name: evaluate(scope, rule) for name, rule in rules.items()}


def parse(raw_content: str, rules: Any) -> Any:
    """
    Extract values from raw HTML content.

    Args:
        raw_content: The block's raw HTML content
        rules: A mapping of name to rule, or a single rule

    Returns:
        A dict of extracted values for a mapping, the bare value for a single rule

    Raises:
        ValueError: If a selector uses unsupported syntax
        pydantic.ValidationError: If a rule given as a mapping is malformed
    """
    root = parse_fragment(raw_content)
    if isinstance(rules, ExtractionRule):
        return evaluate(root, rules)
    return evaluate_all(root, rules)

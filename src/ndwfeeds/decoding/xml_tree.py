"""Generic XML -> nested dict decoder for the NDW DATEX II feeds.

Tree shape:
- element children become mapping keys, namespace prefixes stripped;
- attributes become `@_<local-name>` keys (`xsi:type` -> `@_type`);
- text of an element that also has attributes or children goes under `#text`;
- text-only elements decode to their stripped text ("" when empty);
- repeated siblings become lists, and so do single occurrences of declared array paths.
"""

from __future__ import annotations

from typing import Any, Optional

from lxml import etree

from ndwfeeds.decoding.array_paths import DATEX_ARRAY_PATHS, ArrayPaths
from ndwfeeds.ingestion.errors import FeedParseError


ATTR_PREFIX = "@_"
TEXT_KEY = "#text"


def _parser(encoding: Optional[str] = None) -> etree.XMLParser:
    # Entity resolution and network access stay off; the measurement table needs huge_tree.
    return etree.XMLParser(
        encoding=encoding,
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
        remove_comments=True,
        remove_pis=True,
    )


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _decode_element(element: etree._Element, path: str, array_paths: ArrayPaths) -> Any:
    node: dict[str, Any] = {}
    for key, value in element.attrib.items():
        node[ATTR_PREFIX + _local_name(key)] = value

    has_children = False
    for child in element:
        if not isinstance(child.tag, str):
            continue
        has_children = True
        name = _local_name(child.tag)
        child_path = f"{path}.{name}"
        value = _decode_element(child, child_path, array_paths)
        if name in node:
            existing = node[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[name] = [existing, value]
        elif array_paths.matches(child_path):
            node[name] = [value]
        else:
            node[name] = value

    text = (element.text or "").strip()
    if not node and not has_children:
        return text
    if text:
        node[TEXT_KEY] = text
    return node


def decode_xml(payload: str | bytes, array_paths: ArrayPaths = DATEX_ARRAY_PATHS) -> dict[str, Any]:
    """Decode an XML document into a nested tree keyed by the root element name.

    Raises `FeedParseError` for malformed input; nothing is partially recovered.
    """

    if isinstance(payload, str):
        data = payload.encode("utf-8")
        parser = _parser(encoding="utf-8")
    else:
        data = payload
        parser = _parser()
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise FeedParseError(f"XML parse failed: {exc}") from exc
    if root is None:
        raise FeedParseError("XML parse failed: empty document")

    name = _local_name(root.tag)
    return {name: _decode_element(root, name, array_paths)}


def as_list(value: Any) -> list[Any]:
    """Normalize an optional single-or-repeated node to a list."""

    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def get_path(node: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts; None when the shape does not match."""

    current = node
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def first_path(node: Any, *paths: str) -> Any:
    """Return the first non-None value among several dotted paths."""

    for path in paths:
        value = get_path(node, path)
        if value is not None:
            return value
    return None


def text_value(value: Any) -> str:
    """Flatten a DATEX II multilingual string (`values.value`) or text node to plain text."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        if not value:
            return ""
        return text_value(value[0])
    if isinstance(value, dict):
        if TEXT_KEY in value:
            return str(value[TEXT_KEY])
        nested = first_path(value, "values.value", "value")
        if nested is not None:
            return text_value(nested)
        return ""
    return str(value)


def attribute(node: Any, name: str) -> str:
    if not isinstance(node, dict):
        return ""
    value = node.get(ATTR_PREFIX + name)
    return "" if value is None else str(value)

from __future__ import annotations

import pytest

from ndwfeeds.decoding.array_paths import ArrayPaths
from ndwfeeds.decoding.xml_tree import as_list, attribute, decode_xml, get_path, text_value
from ndwfeeds.ingestion.errors import FeedParseError


def test_array_paths_match_on_segment_boundary_only() -> None:
    paths = ArrayPaths(["a.b"])
    assert paths.matches("a.b")
    assert paths.matches("x.a.b")
    assert not paths.matches("x.a.b.c")
    assert not paths.matches("xa.b")
    assert "x.a.b" in paths


def test_declared_path_becomes_list_even_with_one_element() -> None:
    xml = "<root><items><item>one</item></items><other><item>x</item></other></root>"
    tree = decode_xml(xml, ArrayPaths(["root.items.item"]))
    assert tree["root"]["items"]["item"] == ["one"]
    assert tree["root"]["other"]["item"] == "x"


def test_repeated_siblings_become_list_without_declaration() -> None:
    tree = decode_xml("<root><v>1</v><v>2</v></root>", ArrayPaths([]))
    assert tree["root"]["v"] == ["1", "2"]


def test_attributes_and_namespaces() -> None:
    xml = (
        '<mc:container xmlns:mc="urn:mc" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        '<mc:record xsi:type="sit:Accident" id="R1"><mc:value lang="nl">Ongeval</mc:value></mc:record>'
        "<mc:empty/></mc:container>"
    )
    tree = decode_xml(xml, ArrayPaths([]))
    record = tree["container"]["record"]
    assert attribute(record, "type") == "sit:Accident"
    assert attribute(record, "id") == "R1"
    assert attribute(record, "missing") == ""
    assert record["value"] == {"@_lang": "nl", "#text": "Ongeval"}
    assert tree["container"]["empty"] == ""


def test_bytes_input_honors_declared_encoding() -> None:
    xml = '<?xml version="1.0" encoding="ISO-8859-1"?><root><name>Br\xfcgge</name></root>'.encode("latin-1")
    tree = decode_xml(xml, ArrayPaths([]))
    assert tree["root"]["name"] == "Brügge"


def test_malformed_xml_raises_parse_error() -> None:
    with pytest.raises(FeedParseError):
        decode_xml("<root><open></root>")


def test_helpers() -> None:
    node = {"a": {"b": {"values": {"value": {"@_lang": "nl", "#text": "Tekst"}}}}}
    assert text_value(get_path(node, "a.b")) == "Tekst"
    assert get_path(node, "a.x.y") is None
    assert as_list(None) == []
    assert as_list("x") == ["x"]
    assert text_value([]) == ""

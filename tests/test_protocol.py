import io

import pytest

from wlscanner.protocol import (
    Arg,
    ArgType,
    ScannerError,
    parse_arg_type,
    parse_protocol,
    parse_protocol_string,
    parse_uint,
)

SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<protocol name="sample">
  <copyright>
    Copyright text here.
  </copyright>
  <description summary="sample protocol">
    Longer text.
  </description>
  <interface name="wl_thing" version="3">
    <description summary="a thing">Thing text.</description>
    <request name="destroy" type="destructor"/>
    <request name="create" since="2">
      <description summary="create it">Make one.</description>
      <arg name="id" type="new_id" interface="wl_other" summary="new object"/>
      <arg name="mode" type="uint" enum="mode"/>
    </request>
    <event name="changed" since="3">
      <arg name="label" type="string" allow-null="true"/>
      <arg name="flags" type="uint" enum="wl_other.caps"/>
    </event>
    <enum name="mode">
      <entry name="off" value="0" summary="disabled"/>
      <entry name="on" value="1"/>
    </enum>
  </interface>
  <interface name="wl_other" version="1">
    <enum name="caps" bitfield="true">
      <entry name="read" value="1"/>
    </enum>
  </interface>
</protocol>
"""


def wrap(body, version="2"):
    return (
        '<protocol name="p">\n'
        f'<interface name="wl_x" version="{version}">\n'
        f"{body}\n"
        "</interface>\n</protocol>\n"
    )


@pytest.fixture
def sample():
    return parse_protocol_string(SAMPLE, "sample.xml")


def test_protocol_names(sample):
    assert sample.name == "sample"
    assert sample.uppercase_name == "SAMPLE"
    assert [i.name for i in sample.interfaces] == ["wl_thing", "wl_other"]
    assert sample.interfaces[0].uppercase_name == "WL_THING"


def test_copyright_and_description(sample):
    assert "Copyright text here." in sample.copyright
    assert sample.description.summary == "sample protocol"
    assert "Longer text." in sample.description.text
    thing = sample.interfaces[0]
    assert thing.description.summary == "a thing"
    assert thing.description.text == "Thing text."


def test_requests_and_events(sample):
    thing = sample.interfaces[0]
    assert thing.version == 3
    assert [m.name for m in thing.requests] == ["destroy", "create"]
    assert thing.requests[0].destructor is True
    assert thing.requests[1].destructor is False
    assert [m.since for m in thing.requests] == [1, 2]
    assert thing.events[0].since == 3
    assert thing.requests[1].description.text == "Make one."
    assert thing.requests[1].uppercase_name == "CREATE"


def test_arguments(sample):
    create = sample.interfaces[0].requests[1]
    assert create.arg_count == 2
    assert create.new_id_count == 1
    new_id, mode = create.args
    assert new_id.type is ArgType.NEW_ID
    assert new_id.interface_name == "wl_other"
    assert new_id.summary == "new object"
    assert mode.type is ArgType.UNSIGNED
    assert mode.enumeration_name == "mode"
    label = sample.interfaces[0].events[0].args[0]
    assert label.nullable is True
    assert label.type is ArgType.STRING


def test_enumerations(sample):
    thing, other = sample.interfaces
    mode = thing.enumerations[0]
    assert mode.bitfield is False
    assert [(e.name, e.value, e.summary) for e in mode.entries] == [
        ("off", "0", "disabled"),
        ("on", "1", None),
    ]
    assert mode.entries[1].uppercase_name == "ON"
    assert other.enumerations[0].bitfield is True


def test_find_enumeration(sample):
    thing, other = sample.interfaces
    assert sample.find_enumeration(thing, "mode") is thing.enumerations[0]
    assert sample.find_enumeration(None, "wl_other.caps") is other.enumerations[0]
    assert sample.find_enumeration(thing, "caps") is None
    assert sample.find_enumeration(None, "mode") is None


def test_core_headers_flag():
    assert parse_protocol_string(SAMPLE, core_headers=True).core_headers is True
    assert parse_protocol_string(SAMPLE).core_headers is False


@pytest.mark.parametrize(
    "text, expected",
    [("0", 0), ("42", 42), (" 7", 7), ("+3", 3), ("2147483647", 2147483647)],
)
def test_parse_uint_valid(text, expected):
    assert parse_uint(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "-1", "5x", "2147483648", "1 "])
def test_parse_uint_invalid(text):
    with pytest.raises(ValueError):
        parse_uint(text)


def test_parse_arg_type():
    assert parse_arg_type("uint") is ArgType.UNSIGNED
    assert parse_arg_type("fd") is ArgType.FD
    with pytest.raises(ValueError, match="unknown type"):
        parse_arg_type("float")


def test_is_nullable_type():
    nullable = {t for t in ArgType if Arg("a", t).is_nullable_type()}
    assert nullable == {ArgType.STRING, ArgType.OBJECT, ArgType.NEW_ID, ArgType.ARRAY}


def test_error_location():
    xml = '<protocol name="p">\n<interface name="a"/>\n</protocol>'
    with pytest.raises(ScannerError) as info:
        parse_protocol_string(xml, "f.xml")
    assert str(info.value) == "f.xml:2: error: no interface version given"


@pytest.mark.parametrize(
    "xml, message",
    [
        ("<protocol/>", "no protocol name given"),
        ('<protocol name="p"><interface version="1"/></protocol>', "no interface name given"),
        ('<protocol name="p"><interface name="a" version="x"/></protocol>', "wrong version (x)"),
        (wrap("<request/>"), "no request name given"),
        (wrap('<request name="a" since="q"/>'), "invalid integer (q)"),
        (wrap('<request name="a" since="5"/>'), "since (5) larger than version (2)"),
        (wrap('<request name="destroy"/>'), "destroy request should be destructor type"),
        (wrap('<request name="a"><arg type="int"/></request>'), "no argument name given"),
        (wrap('<request name="a"><arg name="b" type="float"/></request>'), "unknown type (float)"),
        (
            wrap('<request name="a"><arg name="b" type="int" interface="wl_x"/></request>'),
            "interface attribute not allowed for type int",
        ),
        (
            wrap('<request name="a"><arg name="b" type="string" allow-null="yes"/></request>'),
            "invalid value for allow-null attribute (yes)",
        ),
        (
            wrap('<request name="a"><arg name="b" type="int" allow-null="false"/></request>'),
            "allow-null is only valid for objects, strings, and arrays",
        ),
        (wrap('<enum><entry name="a" value="0"/></enum>'), "no enum name given"),
        (
            wrap('<enum name="e" bitfield="maybe"><entry name="a" value="0"/></enum>'),
            "invalid value (maybe) for bitfield attribute (only true/false are accepted)",
        ),
        (wrap('<enum name="e"><entry value="0"/></enum>'), "no entry name given"),
        (wrap('<enum name="e"></enum>'), "enumeration e was empty"),
        (wrap("<description/>"), "description without summary"),
        (
            wrap('<request name="a"><arg name="b" type="uint" enum="missing"/></request>'),
            "could not find enumeration missing",
        ),
        (
            wrap(
                '<enum name="e" bitfield="true"><entry name="a" value="1"/></enum>'
                '<request name="a"><arg name="b" type="int" enum="e"/></request>'
            ),
            "bitfield-style enum must only be referenced by uint",
        ),
        (
            wrap(
                '<enum name="e"><entry name="a" value="1"/></enum>'
                '<request name="a"><arg name="b" type="string" enum="e"/></request>'
            ),
            "enumeration-style argument has wrong type",
        ),
    ],
)
def test_parse_errors(xml, message):
    with pytest.raises(ScannerError) as info:
        parse_protocol_string(xml, "t.xml")
    assert info.value.message == message


def test_int_arg_may_reference_plain_enum():
    xml = wrap(
        '<enum name="e"><entry name="a" value="1"/></enum>'
        '<request name="a"><arg name="b" type="int" enum="e"/></request>'
    )
    protocol = parse_protocol_string(xml)
    assert protocol.interfaces[0].requests[0].args[0].enumeration_name == "e"


def test_empty_enum_attribute_is_ignored():
    xml = wrap('<request name="a"><arg name="b" type="string" enum=""/></request>')
    arg = parse_protocol_string(xml).interfaces[0].requests[0].args[0]
    assert arg.enumeration_name is None


def test_since_not_increasing_warns(capsys):
    xml = wrap('<request name="a" since="2"/><event name="b"/>')
    protocol = parse_protocol_string(xml, "w.xml")
    assert protocol.interfaces[0].events[0].since == 1
    assert "w.xml:" in capsys.readouterr().err
    parse_protocol_string(xml, "w.xml")
    assert "warning: since version not increasing" in capsys.readouterr().err


def test_too_much_character_data():
    xml = '<protocol name="p"><copyright>' + "x" * 9000 + "</copyright></protocol>"
    with pytest.raises(ScannerError, match="too much character data"):
        parse_protocol_string(xml)


def test_malformed_xml():
    with pytest.raises(ScannerError, match="Error parsing XML at line"):
        parse_protocol_string('<protocol name="p">')
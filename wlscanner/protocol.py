"""Protocol model and XML parser for protocol description files."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional, TextIO, Union
from xml.parsers import expat

STDIN_NAME = "<stdin>"
_CHARACTER_DATA_LIMIT = 8192
_INT_MAX = 2**31 - 1
_UINT_PATTERN = re.compile(r"[ \t\n\v\f\r]*\+?[0-9]+|[ \t\n\v\f\r]*-0+")
_ASCII_UPPER = {c: c - 32 for c in range(ord("a"), ord("z") + 1)}


def _uppercase(name: str) -> str:
    return name.translate(_ASCII_UPPER)


@dataclass(frozen=True)
class Location:
    """A position in an input file."""

    filename: str
    line_number: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line_number}"


class ScannerError(Exception):
    """A fatal error found while reading a protocol description."""

    def __init__(self, message: str, location: Optional[Location] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.location}: error: {self.message}"


@dataclass
class Description:
    summary: str
    text: Optional[str] = None


class ArgType(Enum):
    NEW_ID = "new_id"
    INT = "int"
    UNSIGNED = "uint"
    FIXED = "fixed"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"
    FD = "fd"


_NULLABLE_TYPES = frozenset({ArgType.STRING, ArgType.OBJECT, ArgType.NEW_ID, ArgType.ARRAY})


@dataclass
class Arg:
    name: str
    type: ArgType
    nullable: bool = False
    interface_name: Optional[str] = None
    summary: Optional[str] = None
    enumeration_name: Optional[str] = None

    def is_nullable_type(self) -> bool:
        """Strings, objects, new ids and arrays may be null."""
        return self.type in _NULLABLE_TYPES


@dataclass
class Entry:
    name: str
    value: Optional[str]
    summary: Optional[str] = None

    @property
    def uppercase_name(self) -> str:
        return _uppercase(self.name)


@dataclass
class Enumeration:
    name: str
    bitfield: bool = False
    entries: list[Entry] = field(default_factory=list)
    description: Optional[Description] = None

    @property
    def uppercase_name(self) -> str:
        return _uppercase(self.name)


@dataclass
class Message:
    loc: Location
    name: str
    args: list[Arg] = field(default_factory=list)
    destructor: bool = False
    since: int = 1
    description: Optional[Description] = None

    @property
    def uppercase_name(self) -> str:
        return _uppercase(self.name)

    @property
    def arg_count(self) -> int:
        return len(self.args)

    @property
    def new_id_count(self) -> int:
        return sum(1 for arg in self.args if arg.type is ArgType.NEW_ID)


@dataclass
class Interface:
    loc: Location
    name: str
    version: int
    since: int = 1
    requests: list[Message] = field(default_factory=list)
    events: list[Message] = field(default_factory=list)
    enumerations: list[Enumeration] = field(default_factory=list)
    description: Optional[Description] = None

    @property
    def uppercase_name(self) -> str:
        return _uppercase(self.name)


@dataclass
class Protocol:
    name: Optional[str] = None
    interfaces: list[Interface] = field(default_factory=list)
    copyright: Optional[str] = None
    description: Optional[Description] = None
    core_headers: bool = False

    @property
    def uppercase_name(self) -> Optional[str]:
        return None if self.name is None else _uppercase(self.name)

    def find_enumeration(
        self, interface: Optional[Interface], enum_attribute: str
    ) -> Optional[Enumeration]:
        """Resolve an ``enum`` attribute, either ``name`` or ``iface.name``."""
        idx = 0
        for j, char in enumerate(enum_attribute[:-1]):
            if char == ".":
                idx = j

        if idx > 0:
            prefix = enum_attribute[:idx]
            enum_name = enum_attribute[idx + 1:]
            for candidate in self.interfaces:
                if candidate.name.startswith(prefix):
                    for enumeration in candidate.enumerations:
                        if enumeration.name == enum_name:
                            return enumeration
        elif interface is not None:
            for enumeration in interface.enumerations:
                if enumeration.name == enum_attribute:
                    return enumeration
        return None


def parse_uint(text: str) -> int:
    """Parse a non-negative base-10 integer no larger than INT_MAX."""
    if not _UINT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text.strip())
    if value < 0 or value > _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def parse_arg_type(name: str) -> ArgType:
    """Map an XML ``type`` attribute to an :class:`ArgType`."""
    try:
        return ArgType(name)
    except ValueError:
        raise ValueError(f"unknown type ({name})") from None


class _ParseContext:
    def __init__(self, filename: str, core_headers: bool):
        self.filename = filename
        self.loc = Location(filename, 0)
        self.protocol = Protocol(core_headers=core_headers)
        self.interface: Optional[Interface] = None
        self.message: Optional[Message] = None
        self.enumeration: Optional[Enumeration] = None
        self.description: Optional[Description] = None
        self.text_parts: list[str] = []
        self.text_bytes = 0
        self.parser = expat.ParserCreate()
        self.parser.StartElementHandler = self.start_element
        self.parser.EndElementHandler = self.end_element
        self.parser.CharacterDataHandler = self.character_data

    def fail(self, message: str) -> None:
        raise ScannerError(message, self.loc)

    def warn(self, message: str) -> None:
        print(f"{self.loc}: warning: {message}", file=sys.stderr)

    def require_interface(self, element: str) -> Interface:
        if self.interface is None:
            self.fail(f"{element} outside of an interface")
        return self.interface

    def start_element(self, element: str, attrs: dict[str, str]) -> None:
        self.loc = Location(self.filename, self.parser.CurrentLineNumber)
        version = 0
        if "version" in attrs:
            try:
                version = parse_uint(attrs["version"])
            except ValueError:
                self.fail(f"wrong version ({attrs['version']})")
        name = attrs.get("name")
        summary = attrs.get("summary")

        self.text_parts = []
        self.text_bytes = 0

        if element == "protocol":
            if name is None:
                self.fail("no protocol name given")
            self.protocol.name = name
        elif element == "interface":
            self._start_interface(name, version)
        elif element in ("request", "event"):
            self._start_message(element, name, attrs)
        elif element == "arg":
            self._start_arg(name, attrs)
        elif element == "enum":
            self._start_enum(name, attrs.get("bitfield"))
        elif element == "entry":
            if name is None:
                self.fail("no entry name given")
            if self.enumeration is None:
                self.fail("entry outside of an enumeration")
            self.enumeration.entries.append(Entry(name, attrs.get("value"), summary))
        elif element == "description":
            if summary is None:
                self.fail("description without summary")
            description = Description(summary)
            if self.message is not None:
                self.message.description = description
            elif self.enumeration is not None:
                self.enumeration.description = description
            elif self.interface is not None:
                self.interface.description = description
            else:
                self.protocol.description = description
            self.description = description

    def _start_interface(self, name: Optional[str], version: int) -> None:
        if name is None:
            self.fail("no interface name given")
        if version == 0:
            self.fail("no interface version given")
        interface = Interface(self.loc, name, version)
        self.protocol.interfaces.append(interface)
        self.interface = interface

    def _start_message(self, element: str, name: Optional[str], attrs: dict[str, str]) -> None:
        if name is None:
            self.fail("no request name given")
        interface = self.require_interface(element)
        message = Message(self.loc, name)
        (interface.requests if element == "request" else interface.events).append(message)
        message.destructor = attrs.get("type") == "destructor"

        since = attrs.get("since")
        if since is not None:
            try:
                version = parse_uint(since)
            except ValueError:
                self.fail(f"invalid integer ({since})")
            if version > interface.version:
                self.fail(f"since ({version}) larger than version ({interface.version})")
        else:
            version = 1

        if version < interface.since:
            self.warn("since version not increasing")
        interface.since = version
        message.since = version

        if name == "destroy" and not message.destructor:
            self.fail("destroy request should be destructor type")
        self.message = message

    def _start_arg(self, name: Optional[str], attrs: dict[str, str]) -> None:
        if name is None:
            self.fail("no argument name given")
        if self.message is None:
            self.fail("argument outside of a request or event")
        type_name = attrs.get("type")
        try:
            arg_type = parse_arg_type(type_name if type_name is not None else "(null)")
        except ValueError as exc:
            self.fail(str(exc))
        arg = Arg(name, arg_type)

        interface_name = attrs.get("interface")
        if arg_type in (ArgType.NEW_ID, ArgType.OBJECT):
            arg.interface_name = interface_name
        elif interface_name is not None:
            self.fail(f"interface attribute not allowed for type {type_name}")

        allow_null = attrs.get("allow-null")
        if allow_null is not None:
            if allow_null == "true":
                arg.nullable = True
            elif allow_null != "false":
                self.fail(f"invalid value for allow-null attribute ({allow_null})")
            if not arg.is_nullable_type():
                self.fail("allow-null is only valid for objects, strings, and arrays")

        arg.enumeration_name = attrs.get("enum") or None
        arg.summary = attrs.get("summary")
        self.message.args.append(arg)

    def _start_enum(self, name: Optional[str], bitfield: Optional[str]) -> None:
        if name is None:
            self.fail("no enum name given")
        interface = self.require_interface("enum")
        enumeration = Enumeration(name)
        if bitfield is None or bitfield == "false":
            enumeration.bitfield = False
        elif bitfield == "true":
            enumeration.bitfield = True
        else:
            self.fail(
                f"invalid value ({bitfield}) for bitfield attribute "
                "(only true/false are accepted)"
            )
        interface.enumerations.append(enumeration)
        self.enumeration = enumeration

    def end_element(self, element: str) -> None:
        if element == "copyright":
            self.protocol.copyright = "".join(self.text_parts)
        elif element == "description":
            if self.description is not None:
                self.description.text = "".join(self.text_parts)
            self.description = None
        elif element in ("request", "event"):
            self.message = None
        elif element == "enum":
            if self.enumeration is not None and not self.enumeration.entries:
                self.fail(f"enumeration {self.enumeration.name} was empty")
            self.enumeration = None
        elif element == "protocol":
            for interface in self.protocol.interfaces:
                self._verify_arguments(interface, interface.requests)
                self._verify_arguments(interface, interface.events)

    def _verify_arguments(self, interface: Interface, messages: list[Message]) -> None:
        for message in messages:
            for arg in message.args:
                if not arg.enumeration_name:
                    continue
                enumeration = self.protocol.find_enumeration(interface, arg.enumeration_name)
                if enumeration is None:
                    self.fail(f"could not find enumeration {arg.enumeration_name}")
                if arg.type is ArgType.INT:
                    if enumeration.bitfield:
                        self.fail("bitfield-style enum must only be referenced by uint")
                elif arg.type is not ArgType.UNSIGNED:
                    self.fail("enumeration-style argument has wrong type")

    def character_data(self, data: str) -> None:
        size = len(data.encode("utf-8"))
        if self.text_bytes + size > _CHARACTER_DATA_LIMIT:
            raise ScannerError("too much character data")
        self.text_parts.append(data)
        self.text_bytes += size

    def run(self, data: Union[str, bytes]) -> Protocol:
        try:
            self.parser.Parse(data, True)
        except expat.ExpatError as exc:
            raise ScannerError(
                f"Error parsing XML at line {exc.lineno} col {exc.offset}: "
                f"{expat.ErrorString(exc.code)}"
            ) from None
        return self.protocol


def parse_protocol(
    stream: Union[BinaryIO, TextIO],
    filename: Optional[str] = None,
    core_headers: bool = False,
) -> Protocol:
    """Read a protocol description from a binary or text stream."""
    return _ParseContext(filename or STDIN_NAME, core_headers).run(stream.read())


def parse_protocol_string(
    text: Union[str, bytes],
    filename: Optional[str] = None,
    core_headers: bool = False,
) -> Protocol:
    """Read a protocol description held in memory."""
    return _ParseContext(filename or STDIN_NAME, core_headers).run(text)
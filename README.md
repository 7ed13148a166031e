# wlscanner

`wlscanner` reads a Wayland protocol description written in XML. It checks
the description and turns it into plain Python objects. It also has a small
signal/listener module.

## Installation

```
pip install .
```

## Reading a protocol

```python
from wlscanner.protocol import parse_protocol, parse_protocol_string

with open("my-protocol.xml", "rb") as fh:
    protocol = parse_protocol(fh, "my-protocol.xml")

protocol = parse_protocol_string(xml_text, "my-protocol.xml", core_headers=False)
```

`parse_protocol` reads all of an open binary or text stream.
`parse_protocol_string` takes the XML as a `str` or `bytes`. If no filename
is given, errors name the input `<stdin>`.

Both functions return a `Protocol`, which has these fields:

- `name`, `uppercase_name`, `copyright`, `description`, `core_headers`;
- `interfaces`: a list of `Interface` objects. Each has `name`, `version`,
  `since`, `requests`, `events`, `enumerations` and `description`;
- each request or event is a `Message`, with `name`, `args`, `destructor`,
  `since`, `description`, `arg_count` and `new_id_count`;
- each argument is an `Arg`, with `name`, `type` (an `ArgType`), `nullable`,
  `interface_name`, `summary` and `enumeration_name`.
  `Arg.is_nullable_type()` is true for strings, objects, new ids and arrays;
- each `Enumeration` has `name`, `bitfield`, `entries` and `description`.
  Each entry is an `Entry` with `name`, `value` and `summary`;
- a `Description` has `summary` and `text`.

`Protocol.find_enumeration(interface, "name")` looks the name up among that
interface's enumerations. `Protocol.find_enumeration(interface, "iface.name")`
looks it up among the interfaces whose name starts with `iface`.

There are two helpers. `parse_uint(text)` accepts a non-negative base-10
integer up to 2³¹−1 and raises `ValueError` for anything else.
`parse_arg_type(name)` maps an XML `type` attribute to an `ArgType`.

### Errors

When the description is invalid, the parser raises `ScannerError`. The
exception carries the `message` and, where known, the `location` (a
`Location` with `filename` and `line_number`). Its text reads
`file:line: error: message`. Among the problems it reports:

- a missing name or interface version;
- an unknown argument type;
- an `interface` attribute on an argument that is not an object or new_id;
- a bad `allow-null` or `bitfield` value;
- a `since` value larger than the interface version;
- a `destroy` request that is not a destructor;
- an empty enumeration;
- an enumeration reference that is unknown or has the wrong type;
- more than 8192 bytes of text in one element;
- malformed XML.

If the `since` values in an interface go down, a warning is printed to
standard error.

## Signals

`wlscanner.signals` provides `Signal` and `Listener`:

```python
from wlscanner.signals import Listener, Signal

signal = Signal()
listener = Listener(lambda lst, data: print(data))
signal.add(listener)
signal.emit("hello")
listener.remove()
```

`Signal.emit` calls the listeners in the order they were added. A listener
may remove itself or others while being notified. `Signal.get(notify)`
returns the first listener with that callback. A listener can be attached to
only one signal at a time.

## What this package does not do

This package does not generate C headers or marshalling code, and it
installs no command-line program. It parses and checks protocol
descriptions and gives you the object model; producing output from that
model is left to the caller. It does not validate the XML against a DTD.
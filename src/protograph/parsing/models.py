"""Declaration tree produced by the schema parser.

Message, enum and service bodies are closed unions of the node classes
below; consumers handle every member explicitly.
"""

from dataclasses import dataclass, field
from typing import Union


@dataclass
class Comment:
    """A `//` or `/* */` comment."""

    text: str


@dataclass
class Option:
    """An `option name = value;` statement, value kept as raw text."""

    name: str
    value: str


@dataclass
class ReservedRange:
    """A `reserved` or `extensions` statement."""

    kind: str  # "reserved" or "extensions"
    text: str


@dataclass
class NormalField:
    """A regular message field."""

    name: str
    type_name: str
    number: int
    label: str | None = None  # "repeated", "optional", "required"
    options: str = ""

    @property
    def repeated(self) -> bool:
        return self.label == "repeated"


@dataclass
class MapField:
    """A `map<key, value>` field."""

    name: str
    key_type: str
    type_name: str  # value type
    number: int
    options: str = ""


@dataclass
class OneofField:
    """A field inside a `oneof` group."""

    name: str
    type_name: str
    number: int
    options: str = ""


@dataclass
class Group:
    """A proto2 `group` declaration."""

    name: str
    number: int
    label: str | None = None


@dataclass
class ExtendBlock:
    """An `extend Type { ... }` block."""

    extendee: str


OneofElement = Union[OneofField, Option, Comment, Group]


@dataclass
class Oneof:
    """A `oneof` group of alternative fields."""

    name: str
    elements: list[OneofElement] = field(default_factory=list)

    @property
    def fields(self) -> list[OneofField]:
        return [e for e in self.elements if isinstance(e, OneofField)]


@dataclass
class EnumField:
    """A named enum value."""

    name: str
    number: int
    options: str = ""


EnumElement = Union[EnumField, Option, ReservedRange, Comment]


@dataclass
class ProtoEnum:
    """An enum declaration."""

    name: str
    elements: list[EnumElement] = field(default_factory=list)

    @property
    def values(self) -> list[EnumField]:
        return [e for e in self.elements if isinstance(e, EnumField)]


MessageElement = Union[
    NormalField,
    MapField,
    Oneof,
    "ProtoMessage",
    ProtoEnum,
    ReservedRange,
    Comment,
    Option,
    Group,
    ExtendBlock,
]


@dataclass
class ProtoMessage:
    """A message declaration; nested declarations live in `elements`."""

    name: str
    elements: list[MessageElement] = field(default_factory=list)

    @property
    def nested_messages(self) -> list["ProtoMessage"]:
        return [e for e in self.elements if isinstance(e, ProtoMessage)]

    @property
    def nested_enums(self) -> list[ProtoEnum]:
        return [e for e in self.elements if isinstance(e, ProtoEnum)]


@dataclass
class Rpc:
    """An RPC method of a service."""

    name: str
    request_type: str
    response_type: str
    streams_request: bool = False
    streams_response: bool = False
    options: list[Option] = field(default_factory=list)


ServiceElement = Union[Rpc, Option, Comment]


@dataclass
class ProtoService:
    """A service declaration."""

    name: str
    elements: list[ServiceElement] = field(default_factory=list)

    @property
    def methods(self) -> list[Rpc]:
        return [e for e in self.elements if isinstance(e, Rpc)]


@dataclass
class ImportDecl:
    """An `import` statement."""

    path: str
    modifier: str | None = None  # "public" or "weak"

    @property
    def weak(self) -> bool:
        return self.modifier == "weak"


FileElement = Union[ProtoMessage, ProtoEnum, ProtoService, Option, Comment, ExtendBlock]


@dataclass
class ProtoFile:
    """A parsed schema file."""

    path: str
    package: str = ""
    syntax: str = "proto2"
    imports: list[ImportDecl] = field(default_factory=list)
    elements: list[FileElement] = field(default_factory=list)

    @property
    def proto3(self) -> bool:
        return self.syntax == "proto3"

    @property
    def messages(self) -> list[ProtoMessage]:
        return [e for e in self.elements if isinstance(e, ProtoMessage)]

    @property
    def enums(self) -> list[ProtoEnum]:
        return [e for e in self.elements if isinstance(e, ProtoEnum)]

    @property
    def services(self) -> list[ProtoService]:
        return [e for e in self.elements if isinstance(e, ProtoService)]


@dataclass
class ParseResult:
    """Result of a parse operation (success or failure)."""

    ok: bool
    file: ProtoFile | None
    error: str | None
    path: str | None = None
    line: int = 0

    @classmethod
    def success(cls, parsed_file: ProtoFile) -> "ParseResult":
        """Create a successful parse result."""
        return cls(ok=True, file=parsed_file, error=None, path=parsed_file.path)

    @classmethod
    def failure(cls, path: str, error: str, line: int = 0) -> "ParseResult":
        """Create a failed parse result."""
        return cls(ok=False, file=None, error=error, path=path, line=line)

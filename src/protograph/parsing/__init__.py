"""Schema parsing utilities."""

from protograph.parsing.models import (
    Comment,
    EnumField,
    ExtendBlock,
    Group,
    ImportDecl,
    MapField,
    NormalField,
    Oneof,
    OneofField,
    Option,
    ParseResult,
    ProtoEnum,
    ProtoFile,
    ProtoMessage,
    ProtoService,
    ReservedRange,
    Rpc,
)
from protograph.parsing.proto_parser import ProtoParser

__all__ = [
    "Comment",
    "EnumField",
    "ExtendBlock",
    "Group",
    "ImportDecl",
    "MapField",
    "NormalField",
    "Oneof",
    "OneofField",
    "Option",
    "ParseResult",
    "ProtoEnum",
    "ProtoFile",
    "ProtoMessage",
    "ProtoService",
    "ReservedRange",
    "Rpc",
    "ProtoParser",
]

"""Protobuf schema parser using proto-schema-parser.

The library parses proto2, proto3 and editions files into its own AST; this
module maps that AST onto the declaration tree in `protograph.parsing.models`.
Option values, field options and reserved ranges are kept as text only.
"""

from pathlib import Path

from antlr4 import Token
from antlr4.error.ErrorListener import ErrorListener
from proto_schema_parser import ast
from proto_schema_parser.parser import Parser

from protograph.errors import SchemaParseError
from protograph.parsing.models import (
    Comment,
    EnumField,
    ExtendBlock,
    FileElement,
    Group,
    ImportDecl,
    MapField,
    MessageElement,
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

BYTE_ORDER_MARK = "\ufeff"


class _RaiseOnSyntaxError(ErrorListener):
    """Stop at the first lexer or parser error instead of recovering."""

    def syntaxError(self, recognizer, offendingSymbol, line, column, msg, e):
        if offendingSymbol is not None and offendingSymbol.type == Token.EOF:
            msg = f"unexpected end of file ({msg})"
        raise SchemaParseError("<input>", line, f"{msg} at column {column + 1}")


_RAISE_ON_SYNTAX_ERROR = _RaiseOnSyntaxError()


def _strict(recognizer) -> None:
    recognizer.removeErrorListeners()
    recognizer.addErrorListener(_RAISE_ON_SYNTAX_ERROR)


def _value_text(value) -> str:
    """Render an option value roughly as it was written."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, ast.Identifier):
        return value.name
    if isinstance(value, ast.MessageLiteral):
        parts = [
            f"{element.name}: {_value_text(element.value)}"
            for element in value.elements
            if isinstance(element, ast.MessageLiteralField)
        ]
        return "{ " + ", ".join(parts) + " }"
    if isinstance(value, list):
        return "[" + ", ".join(_value_text(v) for v in value) + "]"
    return str(value)


def _options_text(options: list[ast.Option]) -> str:
    return ", ".join(f"{o.name} = {_value_text(o.value)}" for o in options)


def _comment_text(raw: str) -> str:
    if raw.startswith("//"):
        return raw[2:].strip()
    if raw.startswith("/*"):
        return raw[2:].removesuffix("*/").strip()
    return raw.strip()


def _label(cardinality: ast.FieldCardinality | None) -> str | None:
    return cardinality.value.lower() if cardinality is not None else None


def _option(node: ast.Option) -> Option:
    return Option(name=node.name, value=_value_text(node.value))


def _group(node: ast.Group) -> Group:
    return Group(name=node.name, number=node.number, label=_label(node.cardinality))


def _reserved(kind: str, ranges: list[str], names: list[str] | None = None) -> ReservedRange:
    parts = list(ranges) + [f'"{name}"' for name in names or []]
    return ReservedRange(kind=kind, text=", ".join(parts))


def _enum(node: ast.Enum) -> ProtoEnum:
    enum = ProtoEnum(name=node.name)
    for element in node.elements:
        if isinstance(element, ast.EnumValue):
            enum.elements.append(
                EnumField(name=element.name, number=element.number, options=_options_text(element.options))
            )
        elif isinstance(element, ast.Option):
            enum.elements.append(_option(element))
        elif isinstance(element, ast.EnumReserved):
            enum.elements.append(_reserved("reserved", element.ranges, element.names))
        elif isinstance(element, ast.Comment):
            enum.elements.append(Comment(text=_comment_text(element.text)))
    return enum


def _oneof(node: ast.OneOf) -> Oneof:
    oneof = Oneof(name=node.name)
    for element in node.elements:
        if isinstance(element, ast.Field):
            oneof.elements.append(
                OneofField(
                    name=element.name,
                    type_name=element.type,
                    number=element.number,
                    options=_options_text(element.options),
                )
            )
        elif isinstance(element, ast.Group):
            oneof.elements.append(_group(element))
        elif isinstance(element, ast.Option):
            oneof.elements.append(_option(element))
        elif isinstance(element, ast.Comment):
            oneof.elements.append(Comment(text=_comment_text(element.text)))
    return oneof


def _message_element(element) -> MessageElement | None:
    if isinstance(element, ast.Field):
        return NormalField(
            name=element.name,
            type_name=element.type,
            number=element.number,
            label=_label(element.cardinality),
            options=_options_text(element.options),
        )
    if isinstance(element, ast.MapField):
        return MapField(
            name=element.name,
            key_type=element.key_type,
            type_name=element.value_type,
            number=element.number,
            options=_options_text(element.options),
        )
    if isinstance(element, ast.OneOf):
        return _oneof(element)
    if isinstance(element, ast.Message):
        return _message(element)
    if isinstance(element, ast.Enum):
        return _enum(element)
    if isinstance(element, ast.Reserved):
        return _reserved("reserved", element.ranges, element.names)
    if isinstance(element, ast.ExtensionRange):
        return _reserved("extensions", element.ranges)
    if isinstance(element, ast.Group):
        return _group(element)
    if isinstance(element, ast.Extension):
        return ExtendBlock(extendee=element.typeName)
    if isinstance(element, ast.Option):
        return _option(element)
    if isinstance(element, ast.Comment):
        return Comment(text=_comment_text(element.text))
    # Empty statements
    return None


def _message(node: ast.Message) -> ProtoMessage:
    message = ProtoMessage(name=node.name)
    for element in node.elements:
        converted = _message_element(element)
        if converted is not None:
            message.elements.append(converted)
    return message


def _service(node: ast.Service) -> ProtoService:
    service = ProtoService(name=node.name)
    for element in node.elements:
        if isinstance(element, ast.Method):
            service.elements.append(
                Rpc(
                    name=element.name,
                    request_type=element.input_type.type,
                    response_type=element.output_type.type,
                    streams_request=element.input_type.stream,
                    streams_response=element.output_type.stream,
                    options=[_option(o) for o in element.elements if isinstance(o, ast.Option)],
                )
            )
        elif isinstance(element, ast.Option):
            service.elements.append(_option(element))
        elif isinstance(element, ast.Comment):
            service.elements.append(Comment(text=_comment_text(element.text)))
    return service


def _proto_file(path: str, tree: ast.File) -> ProtoFile:
    proto = ProtoFile(path=path)
    if tree.syntax:
        proto.syntax = tree.syntax
    elif tree.edition:
        proto.syntax = f"edition {tree.edition}"

    for element in tree.file_elements:
        converted: FileElement | None = None
        if isinstance(element, ast.Package):
            proto.package = element.name
        elif isinstance(element, ast.Import):
            modifier = "weak" if element.weak else "public" if element.public else None
            proto.imports.append(ImportDecl(path=element.name, modifier=modifier))
        elif isinstance(element, ast.Message):
            converted = _message(element)
        elif isinstance(element, ast.Enum):
            converted = _enum(element)
        elif isinstance(element, ast.Service):
            converted = _service(element)
        elif isinstance(element, ast.Extension):
            converted = ExtendBlock(extendee=element.typeName)
        elif isinstance(element, ast.Option):
            converted = _option(element)
        elif isinstance(element, ast.Comment):
            converted = Comment(text=_comment_text(element.text))
        if converted is not None:
            proto.elements.append(converted)
    return proto


class ProtoParser:
    """Parser for protobuf schema files using proto-schema-parser."""

    def __init__(self):
        """Initialize the schema parser."""
        self._parser = Parser(setup_lexer=_strict, setup_parser=_strict)

    @property
    def supported_extensions(self) -> list[str]:
        """File extensions this parser handles."""
        return [".proto"]

    @property
    def language_name(self) -> str:
        """Human-readable language name."""
        return "Protocol Buffers"

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file."""
        return Path(file_path).suffix.lower() in self.supported_extensions

    def parse(self, file_path: str | Path, content: str) -> ParseResult:
        """Parse schema text into a declaration tree.

        Args:
            file_path: Identifier of the file (used in error messages and
                recorded as the tree's path).
            content: File content as string.

        Returns:
            ParseResult with the parsed file or the syntax error.
        """
        path = str(file_path)
        try:
            tree = self._parser.parse(content.removeprefix(BYTE_ORDER_MARK))
            return ParseResult.success(_proto_file(path, tree))
        except SchemaParseError as e:
            return ParseResult.failure(path, e.message, e.line)
        except Exception as e:
            return ParseResult.failure(path, f"Parse error: {e}")

    def parse_string(self, code: str, filename: str = "<string>") -> ParseResult:
        """Convenience method to parse a string of schema source."""
        return self.parse(filename, code)

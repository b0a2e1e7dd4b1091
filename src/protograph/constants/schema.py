"""Protobuf language constants used by the parser and the resolver."""

# =============================================================================
# Scalar Types
# =============================================================================
# Built-in value types never produce an inclusion edge. A reference to one of
# these short-circuits resolution before any candidate lookup happens.

SCALAR_TYPES = frozenset([
    "double",
    "float",
    "int32",
    "int64",
    "uint32",
    "uint64",
    "sint32",
    "sint64",
    "fixed32",
    "fixed64",
    "sfixed32",
    "sfixed64",
    "bool",
    "string",
    "bytes",
])

# =============================================================================
# Naming
# =============================================================================
# Qualified names are dot separated. Aliases are output-safe identifiers made
# of a fixed prefix and a monotonic counter.

SEPARATOR = "."
ALIAS_PREFIX = "T_"
ALIAS_COUNTER_START = 100

# Missing placeholders live in their own namespace so they can never collide
# with a declared qualified name.
MISSING_NAMESPACE = "missing"

# Source text passed directly (instead of a path) gets a synthetic identifier.
BLOB_PREFIX = "blob_"
BLOB_HASH_LENGTH = 12

# =============================================================================
# RPC Edge Keys
# =============================================================================
# Request and response edges of a service are keyed by synthetic field names
# so they never collide with a regular field of the same name.

RPC_REQUEST_SUFFIX = "_request"
RPC_RESPONSE_SUFFIX = "_response"

# =============================================================================
# Selection
# =============================================================================

SELECTION_SEPARATOR = ";"
SELECT_ROOT_FILE = "*"
SELECT_IMPORTS = "imports"

# =============================================================================
# Source Discovery
# =============================================================================

PROTO_SUFFIX = ".proto"
LIST_SOURCE_PREFIX = "list:"
EXCLUDED_DIRECTORIES = frozenset(["vendor", ".git", "node_modules"])
# Characters that turn a command line input into a glob pattern
GLOB_CHARACTERS = frozenset("*?[")

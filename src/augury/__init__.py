__all__ = [
    # Type schemas
    "Kind",
    "Primitive",
    "NamedRef",
    "FieldSpec",
    "StructSpec",
    "VecSpec",
    "OptionSpec",
    "MapSpec",
    "AvlTreeSpec",
    "TypeRegistry",
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "U256",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "BOOL",
    "HASH",
    "ADDRESS",
    "BYTES",
    "STRING",
    "ContractSchema",
    "SchemaValidationError",
    "load_definitions",
    "load_definitions_file",
    # Decoding
    "BinaryReader",
    "BinaryWriter",
    "DecodedValue",
    "StructValue",
    "Hash",
    "Address",
    "StateMap",
    "decode",
    "decode_state",
    "encode",
    # Remote reads
    "AvlAccessor",
    "AvlEntry",
    "AvlTree",
    "AvlTreeHandle",
    "BatchRequest",
    "CallDescriptor",
    "ChainConnection",
    "ChainDefinition",
    "ChainResolver",
    "ContractAbi",
    "JsonRpcTransport",
    "ReadOnlyContract",
    "ReadOnlyStateContract",
    "StateRestTransport",
    # Errors
    "AuguryError",
    "BatchClosed",
    "BufferUnderrun",
    "CallFailed",
    "DecodeError",
    "DuplicateKey",
    "FieldNotFound",
    "NetworkFailure",
    "Timeout",
    "TrailingBytes",
    "TreeNotFound",
    "TypeMismatch",
    "TypeSpecError",
    "UnknownChain",
    "UnknownType",
    "UnsupportedOperation",
]

from .errors import (
    AuguryError,
    BatchClosed,
    BufferUnderrun,
    CallFailed,
    DecodeError,
    DuplicateKey,
    FieldNotFound,
    NetworkFailure,
    Timeout,
    TrailingBytes,
    TreeNotFound,
    TypeMismatch,
    TypeSpecError,
    UnknownChain,
    UnknownType,
    UnsupportedOperation,
)
from .spec.typespec import (
    ADDRESS,
    BOOL,
    BYTES,
    HASH,
    I8,
    I16,
    I32,
    I64,
    I128,
    STRING,
    U8,
    U16,
    U32,
    U64,
    U128,
    U256,
    AvlTreeSpec,
    FieldSpec,
    Kind,
    MapSpec,
    NamedRef,
    OptionSpec,
    Primitive,
    StructSpec,
    TypeRegistry,
    VecSpec,
)
from .spec.schemas import ContractSchema, SchemaValidationError, load_definitions, load_definitions_file
from .codex.reader import BinaryReader, decode
from .codex.writer import BinaryWriter, encode
from .codex.values import Address, DecodedValue, Hash, StructValue
from .codex.state import StateMap, decode_state
from .pneuma.abi import ContractAbi
from .pneuma.avl import AvlAccessor, AvlEntry, AvlTree, AvlTreeHandle
from .pneuma.batch import BatchRequest, CallDescriptor
from .pneuma.chains import ChainConnection, ChainDefinition, ChainResolver
from .pneuma.contract import ReadOnlyContract, ReadOnlyStateContract
from .pneuma.rest import StateRestTransport
from .pneuma.rpc import JsonRpcTransport

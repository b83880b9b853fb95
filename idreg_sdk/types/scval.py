"""
idreg_sdk.types.scval
=====================

Typed argument encoders and result decoders for the identity-registry
contract's values (Soroban `SCVal`).

Encoders validate *before* anything is built, raising `ArgumentError` with the
offending function/parameter so callers can surface a precise message:

    args = (
        scval.string("DID001", parameter="id"),
        scval.account(owner, parameter="owner"),
        scval.document_hash("11" * 32),
    )

Decoders turn returned values into Python natives (`to_native`) or into the
record dataclasses in `idreg_sdk.types.core`. Contract structs arrive as maps
keyed by symbols; `Option<T>` arrives as void when empty.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from stellar_sdk import StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from idreg_sdk.errors import ArgumentError, DecodeErrorKind, ResponseDecodeError
from idreg_sdk.types.core import AccessPermission, IdentityRecord
from idreg_sdk.utils.bytes import document_hash_from_bytes, document_hash_to_bytes

SCVal = stellar_xdr.SCVal
_T = stellar_xdr.SCValType

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


# -----------------------------------------------------------------------------
# Encoders
# -----------------------------------------------------------------------------


def string(value: Any, *, function: Optional[str] = None, parameter: Optional[str] = None) -> SCVal:
    if not isinstance(value, str):
        raise ArgumentError("expected a string", function=function, parameter=parameter)
    return scval.to_string(value)


def is_account_id(value: Any) -> bool:
    return isinstance(value, str) and StrKey.is_valid_ed25519_public_key(value)


def account(value: Any, *, function: Optional[str] = None, parameter: Optional[str] = None) -> SCVal:
    """Account address argument (G... strkey)."""
    if not is_account_id(value):
        raise ArgumentError(
            f"invalid account id: {value!r}", function=function, parameter=parameter
        )
    return scval.to_address(value)


def document_hash(
    value: Any, *, function: Optional[str] = None, parameter: Optional[str] = "document_hash"
) -> SCVal:
    """64 hex digits at the edge, 32 raw bytes on the wire."""
    try:
        raw = document_hash_to_bytes(value)
    except ValueError as e:
        raise ArgumentError(str(e), function=function, parameter=parameter) from e
    return scval.to_bytes(raw)


def _bounded_int(
    value: Any, lo: int, hi: int, *, function: Optional[str], parameter: Optional[str]
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArgumentError("expected an integer", function=function, parameter=parameter)
    if not lo <= value <= hi:
        raise ArgumentError(
            f"{value} outside [{lo}, {hi}]", function=function, parameter=parameter
        )
    return value


def u32(
    value: Any,
    *,
    minimum: int = 0,
    maximum: int = U32_MAX,
    function: Optional[str] = None,
    parameter: Optional[str] = None,
) -> SCVal:
    return scval.to_uint32(
        _bounded_int(value, minimum, maximum, function=function, parameter=parameter)
    )


def u64(
    value: Any,
    *,
    minimum: int = 0,
    maximum: int = U64_MAX,
    function: Optional[str] = None,
    parameter: Optional[str] = None,
) -> SCVal:
    return scval.to_uint64(
        _bounded_int(value, minimum, maximum, function=function, parameter=parameter)
    )


# -----------------------------------------------------------------------------
# Decoders
# -----------------------------------------------------------------------------


def _text(raw: Any) -> str:
    return raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)


_SIMPLE: Dict[Any, Callable[[SCVal], Any]] = {
    _T.SCV_BOOL: scval.from_bool,
    _T.SCV_U32: scval.from_uint32,
    _T.SCV_I32: scval.from_int32,
    _T.SCV_U64: scval.from_uint64,
    _T.SCV_I64: scval.from_int64,
    _T.SCV_U128: scval.from_uint128,
    _T.SCV_I128: scval.from_int128,
    _T.SCV_BYTES: scval.from_bytes,
    _T.SCV_STRING: lambda v: _text(scval.from_string(v)),
    _T.SCV_SYMBOL: lambda v: _text(scval.from_symbol(v)),
    _T.SCV_ADDRESS: lambda v: scval.from_address(v).address,
}


def map_entries(val: SCVal) -> List[stellar_xdr.SCMapEntry]:
    if val.type != _T.SCV_MAP:
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, f"expected a map, got {val.type.name}")
    return list(val.map.sc_map) if val.map is not None else []


def to_native(val: Optional[SCVal]) -> Any:
    """
    Convert a contract value into plain Python.

    void -> None, integers -> int, string/symbol -> str, bytes -> bytes,
    address -> strkey str, vec -> list, map -> dict. Anything else
    (timepoints, 256-bit integers, errors, contract instances) is returned
    unchanged.
    """
    if val is None or val.type == _T.SCV_VOID:
        return None
    simple = _SIMPLE.get(val.type)
    if simple is not None:
        return simple(val)
    if val.type == _T.SCV_VEC:
        return [to_native(v) for v in scval.from_vec(val)]
    if val.type == _T.SCV_MAP:
        return {_key(e.key): to_native(e.val) for e in map_entries(val)}
    return val


def _key(key: SCVal) -> Any:
    native = to_native(key)
    if isinstance(native, (list, dict)):
        # unhashable; keep the raw value's XDR as key
        return key.to_xdr()
    return native


def _struct(val: SCVal, type_name: str, fields: Mapping[str, type]) -> Dict[str, Any]:
    """Decode a contract struct (symbol-keyed map) and check its field types."""
    try:
        data = to_native(val)
    except (ValueError, TypeError) as e:
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, f"{type_name}: {e}") from e
    if not isinstance(data, dict):
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, f"{type_name}: expected a struct")
    missing = [name for name in fields if name not in data]
    if missing:
        raise ResponseDecodeError(
            DecodeErrorKind.SHAPE, f"{type_name}: missing fields {', '.join(missing)}"
        )
    for name, typ in fields.items():
        value = data[name]
        if not isinstance(value, typ) or (typ is int and isinstance(value, bool)):
            raise ResponseDecodeError(
                DecodeErrorKind.SHAPE,
                f"{type_name}.{name}: expected {typ.__name__}, got {type(value).__name__}",
            )
    return data


_IDENTITY_FIELDS = {
    "owner": str,
    "full_name": str,
    "email": str,
    "document_hash": bytes,
    "is_active": bool,
    "verification_level": int,
    "created_at": int,
    "updated_at": int,
}

_PERMISSION_FIELDS = {
    "granted_to": str,
    "permission_type": int,
    "expires_at": int,
    "is_active": bool,
}


def decode_identity_record(val: Optional[SCVal]) -> Optional[IdentityRecord]:
    """`Option<IdentityData>` -> IdentityRecord, or None when the contract returned none."""
    if val is None or val.type == _T.SCV_VOID:
        return None
    data = _struct(val, "IdentityData", _IDENTITY_FIELDS)
    try:
        doc_hash = document_hash_from_bytes(data["document_hash"])
        return IdentityRecord(
            owner=data["owner"],
            full_name=data["full_name"],
            email=data["email"],
            document_hash=doc_hash,
            is_active=data["is_active"],
            verification_level=data["verification_level"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )
    except ValueError as e:
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, f"IdentityData: {e}") from e


def decode_access_permission(val: Optional[SCVal]) -> Optional[AccessPermission]:
    """`Option<AccessPermission>` -> AccessPermission, or None."""
    if val is None or val.type == _T.SCV_VOID:
        return None
    data = _struct(val, "AccessPermission", _PERMISSION_FIELDS)
    return AccessPermission(
        granted_to=data["granted_to"],
        permission_type=data["permission_type"],
        expires_at=data["expires_at"],
        is_active=data["is_active"],
    )


def decode_string_list(val: Optional[SCVal]) -> List[str]:
    data = to_native(val)
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, "expected a vector of strings")
    return data


def decode_u32(val: Optional[SCVal]) -> int:
    if val is None or val.type != _T.SCV_U32:
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, "expected a u32 value")
    return scval.from_uint32(val)


def decode_address(val: Optional[SCVal]) -> str:
    if val is None or val.type != _T.SCV_ADDRESS:
        raise ResponseDecodeError(DecodeErrorKind.SHAPE, "expected an address value")
    return scval.from_address(val).address


__all__ = [
    "SCVal",
    "U32_MAX",
    "U64_MAX",
    "string",
    "is_account_id",
    "account",
    "document_hash",
    "u32",
    "u64",
    "to_native",
    "map_entries",
    "decode_identity_record",
    "decode_access_permission",
    "decode_string_list",
    "decode_u32",
    "decode_address",
]

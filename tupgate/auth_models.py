"""Data types of the permission verification service and their JSON forms."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

__all__ = [
    "ModelDecodeError",
    "VerifyData",
    "PermissionVerifyReq",
    "PermissionVerifyRsp",
]

_MISSING = object()


class ModelDecodeError(ValueError):
    """Raised when a JSON document does not fit a model."""


def _object(data: Any) -> Mapping:
    if not isinstance(data, Mapping):
        raise ModelDecodeError(
            f"read 'struct' type mismatch, get type: {type(data).__name__}."
        )
    return data


def _read(data: Mapping, key: str, kind: str, required: bool, default: Any) -> Any:
    """Read one field; a missing or mistyped optional field keeps its default."""
    value = data.get(key, _MISSING)
    if kind == "int":
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        if ok:
            return int(value)
    elif kind == "bool":
        if isinstance(value, bool):
            return value
    elif kind == "str":
        if isinstance(value, str):
            return value
    else:
        raise ValueError(f"unknown field kind {kind!r}")
    if required:
        if value is _MISSING or value is None:
            raise ModelDecodeError(f"required field {key!r} is missing")
        raise ModelDecodeError(
            f"field {key!r} expects {kind}, got {type(value).__name__}"
        )
    return default


def _loads(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ModelDecodeError(f"invalid JSON: {exc}") from exc


def _dumps(data: Mapping) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass
class VerifyData:
    """Result of a permission check: the user and whether access is granted."""

    CLASS_NAME: ClassVar[str] = "authstars.VerifyData"

    userid: int = 0
    passed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"userid": self.userid, "pass": self.passed}

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "VerifyData":
        obj = _object(data)
        return cls(
            userid=_read(obj, "userid", "int", True, 0),
            passed=_read(obj, "pass", "bool", True, True),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "VerifyData":
        return cls.from_dict(_loads(text))


@dataclass
class PermissionVerifyReq:
    """Request to check whether a token may call a servant function."""

    CLASS_NAME: ClassVar[str] = "authstars.PermissionVerifyReq"

    token: str = ""
    servant_name: str = ""
    func_name: str = ""
    req_param: str = ""
    remote_addr: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "servantName": self.servant_name,
            "funcName": self.func_name,
            "reqParam": self.req_param,
            "remoteAddr": self.remote_addr,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "PermissionVerifyReq":
        obj = _object(data)
        return cls(
            token=_read(obj, "token", "str", True, ""),
            servant_name=_read(obj, "servantName", "str", True, ""),
            func_name=_read(obj, "funcName", "str", True, ""),
            req_param=_read(obj, "reqParam", "str", False, ""),
            remote_addr=_read(obj, "remoteAddr", "str", False, ""),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "PermissionVerifyReq":
        return cls.from_dict(_loads(text))


@dataclass
class PermissionVerifyRsp:
    """Answer to a permission check."""

    CLASS_NAME: ClassVar[str] = "authstars.PermissionVerifyRsp"

    code: int = 0
    message: str = ""
    data: VerifyData = field(default_factory=VerifyData)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data.to_dict(),
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "PermissionVerifyRsp":
        obj = _object(data)
        nested = obj.get("data")
        verify = VerifyData.from_dict(nested) if isinstance(nested, Mapping) else VerifyData()
        return cls(
            code=_read(obj, "code", "int", True, 0),
            message=_read(obj, "message", "str", False, ""),
            data=verify,
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "PermissionVerifyRsp":
        return cls.from_dict(_loads(text))
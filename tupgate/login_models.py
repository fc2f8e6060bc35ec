"""Data types of the login service and its login message queue, with JSON forms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from .auth_models import ModelDecodeError, _dumps, _loads, _object, _read

__all__ = [
    "ModelDecodeError",
    "LoginReq",
    "LoginRsp",
    "UserLoginMsg",
]


@dataclass
class LoginReq:
    """Request to log a user in with a token of the given type."""

    CLASS_NAME: ClassVar[str] = "loginTars.LoginReq"

    uid: int = 0
    type: int = 0
    token: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"uid": self.uid, "type": self.type, "token": self.token}

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "LoginReq":
        obj = _object(data)
        return cls(
            uid=_read(obj, "uid", "int", True, 0),
            type=_read(obj, "type", "int", True, 0),
            token=_read(obj, "token", "str", True, ""),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "LoginReq":
        return cls.from_dict(_loads(text))


@dataclass
class LoginRsp:
    """Answer to a login request: a result code and its reason."""

    CLASS_NAME: ClassVar[str] = "loginTars.LoginRsp"

    code: int = 0
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "reason": self.reason}

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "LoginRsp":
        obj = _object(data)
        return cls(
            code=_read(obj, "code", "int", True, 0),
            reason=_read(obj, "reason", "str", True, ""),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "LoginRsp":
        return cls.from_dict(_loads(text))


@dataclass
class UserLoginMsg:
    """Notice that a user logged in through a gateway connection."""

    CLASS_NAME: ClassVar[str] = "loginMqTars.UserLoginMsg"

    uid: int = 0
    gate: str = ""
    cid: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"uid": self.uid, "gate": self.gate, "cid": self.cid}

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "UserLoginMsg":
        obj = _object(data)
        return cls(
            uid=_read(obj, "uid", "int", True, 0),
            gate=_read(obj, "gate", "str", True, ""),
            cid=_read(obj, "cid", "int", True, 0),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> "UserLoginMsg":
        return cls.from_dict(_loads(text))
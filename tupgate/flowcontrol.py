"""Server side of the flow control service: request decoding and dispatch."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .auth_models import ModelDecodeError

__all__ = [
    "FUNCTIONS",
    "UnknownFunctionError",
    "FlowControl",
]

FUNCTIONS = ("getGWDB", "report")


class UnknownFunctionError(LookupError):
    """Raised when a request names a function the servant does not offer."""

    def __init__(self, func_name: str):
        super().__init__(f"no such function: {func_name!r}")
        self.func_name = func_name


def _request_object(payload: Any) -> Mapping:
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ModelDecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ModelDecodeError(
            f"request must be a JSON object, got {type(payload).__name__}"
        )
    return payload


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _read_str_map(data: Mapping, key: str, required: bool) -> dict[str, str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ModelDecodeError(f"required field {key!r} is missing")
        return {}
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        if required:
            raise ModelDecodeError(f"field {key!r} expects a map of strings")
        return {}
    return dict(value)


def _read_int_map(data: Mapping, key: str) -> dict[str, int]:
    value = data.get(key)
    if value is None:
        raise ModelDecodeError(f"required field {key!r} is missing")
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and _is_int(v) for k, v in value.items()
    ):
        raise ModelDecodeError(f"field {key!r} expects a map of integers")
    return dict(value)


def _read_str(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        raise ModelDecodeError(f"required field {key!r} is missing")
    if not isinstance(value, str):
        raise ModelDecodeError(f"field {key!r} expects a string")
    return value


class FlowControl(ABC):
    """Flow control servant; subclasses implement the two service calls."""

    @abstractmethod
    def get_gw_db(self, db_conf: dict[str, str]) -> tuple[int, dict[str, str]]:
        """Return the result code and the gateway database configuration."""

    @abstractmethod
    def report(self, flow: dict[str, int], ip: str) -> int:
        """Record flow counters reported by the gateway at ``ip``."""

    def dispatch(self, func_name: str, payload: Any) -> dict[str, Any]:
        """Decode a JSON request for ``func_name``, call it and build the reply.

        ``payload`` is a JSON object, as a mapping or as text. Raises
        UnknownFunctionError for an unknown function and ModelDecodeError for
        a request that lacks required fields.
        """
        if func_name not in FUNCTIONS:
            raise UnknownFunctionError(func_name)
        request = _request_object(payload)

        if func_name == "getGWDB":
            db_conf = _read_str_map(request, "dbConf", required=False)
            ret, db_conf = self.get_gw_db(db_conf)
            return {"dbConf": dict(db_conf), "tars_ret": int(ret)}

        flow = _read_int_map(request, "flow")
        ip = _read_str(request, "ip")
        ret = self.report(flow, ip)
        return {"tars_ret": int(ret)}
"""Routing of servant names to backend proxies, with per-route hash settings."""

from __future__ import annotations

import dataclasses
import logging
import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

__all__ = [
    "HashType",
    "HashInfo",
    "ProxyManager",
    "parse_hash_info",
]

_log = logging.getLogger(__name__)

_IGNORED_HEADER_VALUES = frozenset(
    {"00000000000000000000000000000000", "0000000000000000", "00", "0"}
)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


class HashType(IntEnum):
    """How calls through a proxy are spread over its endpoints."""

    ROBIN_ROUND = 0
    REQUEST_ID = 1
    HTTP_HEAD = 2
    CLIENT_IP = 3
    DEFAULT = 99


@dataclass
class HashInfo:
    """Hash setting of a route; ``http_head_key`` names the header for HTTP_HEAD."""

    type: HashType = HashType.DEFAULT
    http_head_key: str = ""


def _split(text: str, separators: str) -> list[str]:
    """Split on any of the separator characters, dropping empty fields."""
    pattern = "[" + re.escape(separators) + "]"
    return [part for part in re.split(pattern, text) if part]


def _to_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _apply_hash_info(obj_info: str, info: HashInfo) -> str:
    """Update ``info`` from an ``obj|type[|key]`` spec and return the object name."""
    parts = _split(obj_info, "|")
    real_obj = ""
    if len(parts) > 1:
        kind = _to_int(parts[1])
        if kind == HashType.ROBIN_ROUND:
            info.type = HashType.ROBIN_ROUND
        elif kind == HashType.REQUEST_ID:
            info.type = HashType.REQUEST_ID
        elif kind == HashType.HTTP_HEAD and len(parts) == 3:
            info.type = HashType.HTTP_HEAD
            info.http_head_key = parts[2].strip()
        elif kind == HashType.CLIENT_IP:
            info.type = HashType.CLIENT_IP
        else:
            info.type = HashType.DEFAULT
        real_obj = parts[0]
    elif parts:
        info.type = HashType.DEFAULT
        real_obj = parts[0]
    return real_obj.strip()


def parse_hash_info(obj_info: str) -> tuple[str, HashInfo]:
    """Split an ``obj|type[|key]`` spec into the object name and its hash setting."""
    info = HashInfo()
    real_obj = _apply_hash_info(obj_info, info)
    return real_obj, info


def _mapping(value: Any, where: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise ValueError(f"config section {where} must be a mapping")
    return value


class ProxyManager:
    """Resolves client servant and function names to backend proxies.

    ``proxy_factory`` receives the real backend object name and returns a
    proxy for it; proxies are cached per route name.
    """

    def __init__(self, proxy_factory: Callable[[str], Any]):
        self._factory = proxy_factory
        self._lock = threading.Lock()
        self._name_map: dict[str, str] = {}
        self._proxy_map: dict[str, tuple[Any, HashInfo]] = {}
        self._http_header: dict[str, str] = {}
        self._http_header_for_proxy: set[str] = set()
        self._auto_proxy = False

    def load_proxy(self, config: Mapping) -> str:
        """Load routes from ``config``; raises ValueError on a malformed config.

        The config is a nested mapping: ``main`` holds ``auto_proxy``, the
        ``proxy`` section (names to objects, nested sections prefixing their
        keys with ``section.``) and the ``env_httpheader`` section.
        """
        main = _mapping(_mapping(config, "/").get("main", {}), "/main")
        auto_proxy = main.get("auto_proxy", "0")
        if isinstance(auto_proxy, Mapping):
            raise ValueError("/main<auto_proxy> must be a value")
        self._auto_proxy = _to_int(str(auto_proxy)) != 0

        with self._lock:
            proxy_section = main.get("proxy")
            if proxy_section is not None:
                proxy_section = _mapping(proxy_section, "/main/proxy")
                name_map = {
                    str(key): str(value)
                    for key, value in proxy_section.items()
                    if not isinstance(value, Mapping)
                }
                for sub, section in proxy_section.items():
                    if isinstance(section, Mapping):
                        for key, value in section.items():
                            if not isinstance(value, Mapping):
                                name_map[f"{sub}.{key}"] = str(value)
                self._name_map = name_map

            for key, obj in sorted(self._name_map.items()):
                parts = _split(key, ":")
                if len(parts) == 2:
                    for func in _split(parts[1], "|"):
                        route = f"{parts[0]}:{func}"
                        self._name_map[route] = obj
                        self._update_hash_info(route, obj)
                else:
                    self._update_hash_info(key, obj)

            _log.debug("all proxies: %s", self._name_map)

            self._http_header_for_proxy.clear()
            env = main.get("env_httpheader")
            if env is not None:
                env = _mapping(env, "/main/env_httpheader")
                self._http_header.clear()
                for key, value in env.items():
                    upper = str(key).upper()
                    self._http_header[upper] = str(value)
                    tokens = _split(upper, ": ")
                    if tokens:
                        self._http_header_for_proxy.add(tokens[0])
                    else:
                        _log.error("bad http header route: %s", key)
        return "load ok"

    def _update_hash_info(self, route: str, obj: str) -> None:
        cached = self._proxy_map.get(route)
        if cached is not None:
            _apply_hash_info(obj, cached[1])

    def _route_by_header(self, servant_name: str, headers: Mapping[str, str]) -> str:
        upper_headers = {str(k).upper(): v for k, v in headers.items()}
        for header in sorted(self._http_header_for_proxy):
            value = upper_headers.get(header, "")
            if not value or value in _IGNORED_HEADER_VALUES:
                continue
            env = self._http_header.get(f"{header}:{value.upper()}")
            if env is not None:
                return f"{env}.{servant_name}"
        return servant_name

    def get_proxy(
        self,
        servant_name: str,
        func_name: str,
        headers: Mapping[str, str] | None = None,
    ) -> tuple[Any, HashInfo] | None:
        """Return the proxy and hash setting for a call, or None if unrouted."""
        with self._lock:
            name = self._route_by_header(servant_name, headers or {})

            name_func = f"{name}:{func_name}"
            cached = self._proxy_map.get(name_func)
            if cached is not None:
                return cached[0], dataclasses.replace(cached[1])

            real_name = self._name_map.get(name_func, "")
            if real_name:
                name = name_func
            else:
                cached = self._proxy_map.get(name)
                if cached is not None:
                    return cached[0], dataclasses.replace(cached[1])
                real_name = self._name_map.get(name, "")

            if not real_name and self._auto_proxy:
                base = servant_name.split("@", 1)[0]
                if len(_split(base, ".")) >= 3:
                    real_name = servant_name

            if not real_name:
                _log.error("%s, %s, no proxy", servant_name, name)
                return None

            real_name, info = parse_hash_info(real_name)
            proxy = self._factory(real_name)
            _log.debug(
                "new proxy %s:%s -> %s, hash %s-%s",
                servant_name, func_name, real_name, info.type, info.http_head_key,
            )
            if name:
                self._proxy_map[name] = (proxy, info)
            return proxy, dataclasses.replace(info)
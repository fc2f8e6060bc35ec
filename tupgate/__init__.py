"""Gateway building blocks: WebSocket framing and handshake, proxy routing, response callbacks and message models."""

__version__ = "0.1.0"

__all__ = [
    "wsframe",
    "handshake",
    "wsadapter",
    "proxymanager",
    "callback",
    "auth_models",
    "login_models",
    "flowcontrol",
]
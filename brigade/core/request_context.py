from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_CTX: ContextVar[str | None] = ContextVar("tenant", default=None)
_USER_ID_CTX: ContextVar[str | None] = ContextVar("user_id", default=None)
_CLIENT_IP_CTX: ContextVar[str | None] = ContextVar("client_ip", default=None)


def set_request_context(
    *,
    request_id: str | None = None,
    tenant: str | None = None,
    user_id: str | None = None,
    client_ip: str | None = None,
) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if tenant is not None:
        _TENANT_CTX.set(tenant)
    if user_id is not None:
        _USER_ID_CTX.set(user_id)
    if client_ip is not None:
        _CLIENT_IP_CTX.set(client_ip)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_tenant() -> str | None:
    return _TENANT_CTX.get()


def get_user_id() -> str | None:
    return _USER_ID_CTX.get()


def get_client_ip() -> str | None:
    return _CLIENT_IP_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _TENANT_CTX.set(None)
    _USER_ID_CTX.set(None)
    _CLIENT_IP_CTX.set(None)

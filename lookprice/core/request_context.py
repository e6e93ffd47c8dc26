from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from lookprice.services.auth import Principal


@dataclass
class RequestContext:
    """Who is calling and which store they act on, for the lifetime of one request.

    Bound fields are mutated in place: sync dependencies run on a copied context
    that still points at this same object.
    """

    request_id: str
    principal: Optional[Principal] = None
    store_id: Optional[int] = None

    @property
    def user_id(self) -> Optional[int]:
        return self.principal.user_id if self.principal is not None else None

    @property
    def role(self) -> Optional[str]:
        return self.principal.role if self.principal is not None else None


_CURRENT: ContextVar[Optional[RequestContext]] = ContextVar("lookprice_request", default=None)


def begin_request(request_id: str) -> Token:
    return _CURRENT.set(RequestContext(request_id=request_id))


def end_request(token: Token) -> None:
    _CURRENT.reset(token)


def current_request() -> Optional[RequestContext]:
    return _CURRENT.get()


def bind_principal(principal: Principal) -> None:
    context = _CURRENT.get()
    if context is not None:
        context.principal = principal


def bind_store(store_id: int) -> None:
    context = _CURRENT.get()
    if context is not None:
        context.store_id = store_id

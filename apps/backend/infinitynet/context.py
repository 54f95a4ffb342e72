"""
===============================================================================
TARJETA CRC — infinitynet/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar request_id, método, path y sujeto autenticado del request en curso.
  - Exponerlos al logger sin pasarlos como parámetro.

Colaboradores:
  - crosscutting.middleware.RequestContextMiddleware: abre y cierra el contexto.
  - identity.access: registra el sujeto (sub + source del token).
  - crosscutting.logger: lee get_context_dict() en cada registro.

Notas:
  - Un único ContextVar con un snapshot inmutable; cada task de asyncio ve
    su propia copia.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import asdict, dataclass, replace


@dataclass(frozen=True, slots=True)
class RequestContext:
    request_id: str = ""
    method: str = ""
    path: str = ""
    subject: str = ""
    source: str = ""


_EMPTY = RequestContext()
_current: ContextVar[RequestContext] = ContextVar("request_context", default=_EMPTY)


def current() -> RequestContext:
    return _current.get()


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _current.set(
        RequestContext(request_id=request_id or "", method=method or "", path=path or "")
    )


def set_subject(subject: str, source: str = "") -> None:
    """Agrega el usuario autenticado al contexto ya abierto."""
    _current.set(replace(_current.get(), subject=subject or "", source=source or ""))


def get_context_dict() -> dict[str, str]:
    """Campos no vacíos del contexto (listos para JSON)."""
    return {key: value for key, value in asdict(_current.get()).items() if value}


def clear_context() -> None:
    _current.set(_EMPTY)

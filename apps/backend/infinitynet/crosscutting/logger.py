# apps/backend/infinitynet/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Un único logger "api-infinitynet" que emite una línea JSON por evento con:
- nivel, mensaje y origen (módulo/función/línea)
- contexto del request (request_id, method, path, subject, source)
- los `extra=` del call-site, con credenciales redactadas

LOG_JSON=false cambia a formato texto (útil en desarrollo).

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - redact(): redacción recursiva (también la usa /api/diagnostics)
  - JSONFormatter
  - setup_logger() / logger

Colaboradores:
  - infinitynet/context.py
  - crosscutting/config.py (LOG_LEVEL, LOG_JSON)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "api-infinitynet"

REDACTED = "***REDACTADO***"
TRUNCATED = "***TRUNCADO***"

# Claves (case-insensitive) cuyo valor nunca se loguea.
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "senha",
        "pin",
        "secret",
        "token",
        "refreshtoken",
        "refresh_token",
        "authorization",
        "api_key",
        "x-api-key",
        "credential_hash",
        "jwt_secret",
        "database_url",
        "redis_url",
    }
)

MAX_STRING = 4_000
MAX_DEPTH = 4

# Atributos estándar de LogRecord: no son "extra".
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def redact(value: Any, *, key: str | None = None, depth: int = 0) -> Any:
    """
    Copia JSON-friendly de `value` con secretos reemplazados por REDACTED.

    - dicts: la clave decide la redacción del valor
    - listas/tuplas: heredan la clave del contenedor
    - strings largos se recortan; bytes se resumen por tamaño
    """
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if depth > MAX_DEPTH:
        return TRUNCATED

    if isinstance(value, dict):
        return {str(k): redact(v, key=str(k), depth=depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact(item, key=key, depth=depth + 1) for item in value]
    if isinstance(value, str):
        return value if len(value) <= MAX_STRING else f"{value[:MAX_STRING]}…(truncado)"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes {len(value)}B>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """LogRecord -> línea JSON (contexto + extras redactados + excepción)."""

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
            **get_context_dict(),
        }

        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        payload.update(redact(extras))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = SERVICE_NAME) -> logging.Logger:
    """
    Configura el logger del servicio (idempotente: un solo handler).

    Si Settings no valida todavía, arranca con INFO/JSON; el error de
    configuración se reporta en el lifespan de la app.
    """
    from pydantic import ValidationError

    from .config import get_settings

    try:
        settings = get_settings()
        level, use_json = (settings.log_level or "INFO").upper(), settings.log_json
    except ValidationError:
        level, use_json = "INFO", True

    log = logging.getLogger(name)
    log.setLevel(logging.getLevelNamesMapping().get(level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if use_json
            else logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        log.addHandler(handler)
    return log


logger = setup_logger()

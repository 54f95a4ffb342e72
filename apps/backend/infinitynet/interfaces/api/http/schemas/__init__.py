"""
===============================================================================
TARJETA CRC — schemas/__init__.py
===============================================================================

Módulo:
    Paquete de Schemas HTTP (DTOs Pydantic)

Reglas:
    - Schemas NO deben importar infraestructura.
    - Schemas NO ejecutan servicios: solo tipos y validación de input/output.
===============================================================================
"""

__all__ = []

"""
Schemas HTTP compartidos: paginación y envelope de páginas.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

MAX_PAGE_LIMIT = 100


class PageRes(BaseModel, Generic[T]):
    """Página de resultados (totalPages = ceil(total / limit))."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")

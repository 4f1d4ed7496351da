"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the sparse-patch base model used by every partial update, the
small nested reference models embedded in responses, and the generic
message envelope.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Literal string some multipart clients send when a form field is cleared.
NULO_FORMULARIO = "null"


def normalizar_nulo(value: Any) -> Any:
    """Map the form sentinel ``"null"`` to a real ``None``.

    Any other value, including the empty string, is returned untouched.
    """
    if isinstance(value, str) and value.strip() == NULO_FORMULARIO:
        return None
    return value


class ParcialModel(BaseModel):
    """Base for sparse-patch payloads.

    Each field has three states, decoded once here at the boundary:

    - absent from the payload → *unset*, the stored value is preserved;
    - ``null`` or the string ``"null"`` → *set to null*;
    - anything else → *set to that value*.

    Services read the payload through :meth:`campos_enviados`, which only
    contains the fields in the last two states.
    """

    @model_validator(mode="before")
    @classmethod
    def _normalizar_nulos(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: normalizar_nulo(value) for key, value in data.items()}
        return data

    def campos_enviados(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UsuarioRef(BaseModel):
    """Minimal user reference embedded in other responses."""

    id: int
    email: str
    nombre_completo: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CatalogoRef(BaseModel):
    """Minimal ``{id, nombre}`` reference for project, area or supplier."""

    id: int
    nombre: str

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information.
    """

    message: str = Field(..., description="Resumen del resultado de la operación.")
    detail: str | None = Field(
        default=None,
        description="Información adicional (contexto, sugerencia, etc.).",
    )

"""
Pydantic v2 schemas for in-app notifications.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict


class NotificacionResponse(BaseModel):
    id: int
    titulo: str
    mensaje: str
    tipo: str
    leida: bool
    requerimiento_id: int | None = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)

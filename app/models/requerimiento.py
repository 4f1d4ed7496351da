"""Requerimiento model — a single purchase request and its two status axes."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Requerimiento(Base):
    """Purchase requirement tracked from request to payment.

    Two independent status fields:

    - ``estado`` is the approval pipeline (``PENDING_APPROVAL`` →
      ``APPROVED`` / ``REJECTED`` ...).
    - ``estado_adquisicion`` is the fulfilment pipeline (``PENDIENTE`` →
      ``EN_TRAMITE`` → ``FINALIZADO`` ...), driven partly by payments.

    Attributes:
        id: Primary key.
        titulo: Short title.
        descripcion: Free-text description.
        cantidad: Requested quantity as typed by the user.
        anio: Year partition used by every list filter.
        grupo_id: FK to the mass-creation batch, if any.
        es_asiento: Administrative entry created already approved.
        monto_estimado: Estimate typed in the mass-creation form.
        monto_total: Allocated amount; preferred total for payment caps.
        monto_real: Final negotiated cost; changes reconcile the budget.
        tiene_pagos_multiples: Gate for more than one payment.
        aprobacion_coordinador / aprobacion_director: Group sign-off flags.
    """

    __tablename__ = "requerimiento"

    id = Column(Integer, primary_key=True, autoincrement=True)
    titulo = Column(String(300), nullable=False)
    descripcion = Column(Text, nullable=True)
    cantidad = Column(String(50), nullable=False, default="1")
    anio = Column(Integer, nullable=False, index=True)
    grupo_id = Column(Integer, ForeignKey("grupo_requerimiento.id"), nullable=True, index=True)
    es_asiento = Column(Boolean, nullable=False, default=False)
    categoria = Column(String(30), nullable=False, default="COMPRA")

    # Amounts
    monto_estimado = Column(Numeric(15, 2), nullable=True)
    monto_total = Column(Numeric(15, 2), nullable=True)
    monto_real = Column(Numeric(15, 2), nullable=True)

    # Status axes
    estado = Column(String(30), nullable=False, default="PENDING_APPROVAL")
    # "PENDING_APPROVAL", "PENDING_COORDINATION", "PENDING_FINANCE",
    # "APPROVED", "APPROVED_FOR_PURCHASE", "REJECTED", "PAID"
    estado_adquisicion = Column(String(30), nullable=False, default="PENDIENTE")
    # "PENDIENTE", "EN_TRAMITE", "ENTREGADO", "FINALIZADO", "ANULADO", "POSTERGADO"

    # Ownership
    proyecto_id = Column(Integer, ForeignKey("proyecto.id"), nullable=False)
    area_id = Column(Integer, ForeignKey("area.id"), nullable=False, index=True)
    presupuesto_id = Column(Integer, ForeignKey("presupuesto.id"), nullable=True)
    creado_por_id = Column(Integer, ForeignKey("usuario.id"), nullable=False, index=True)
    proveedor_id = Column(Integer, ForeignKey("proveedor.id"), nullable=True)
    nombre_proveedor_manual = Column(String(300), nullable=True)

    # Procurement references
    numero_orden_compra = Column(String(100), nullable=True)
    numero_factura = Column(String(100), nullable=True)
    fecha_entrega = Column(Date, nullable=True)
    recibido_a_satisfaccion = Column(Boolean, nullable=True)
    comentarios_satisfaccion = Column(Text, nullable=True)

    # Payments
    tiene_pagos_multiples = Column(Boolean, nullable=False, default=False)

    # Group sign-off
    aprobacion_coordinador = Column(Boolean, nullable=False, default=False)
    comentario_coordinador = Column(Text, nullable=True)
    aprobacion_director = Column(Boolean, nullable=False, default=False)
    comentario_director = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    proyecto = relationship("Proyecto", lazy="select")
    area = relationship("Area", lazy="select")
    presupuesto = relationship("Presupuesto", back_populates="requerimientos", lazy="select")
    creado_por = relationship("Usuario", lazy="select")
    proveedor = relationship("Proveedor", lazy="select")
    grupo = relationship("GrupoRequerimiento", back_populates="requerimientos", lazy="select")
    adjuntos = relationship(
        "Adjunto",
        back_populates="requerimiento",
        order_by="Adjunto.id",
        lazy="select",
        cascade="all, delete-orphan",
    )
    pagos = relationship(
        "Pago",
        back_populates="requerimiento",
        order_by="Pago.numero_pago",
        lazy="select",
        cascade="all, delete-orphan",
    )
    historial = relationship(
        "HistorialRequerimiento",
        back_populates="requerimiento",
        order_by="HistorialRequerimiento.id.desc()",
        lazy="select",
        cascade="all, delete-orphan",
    )
    notificaciones = relationship(
        "Notificacion",
        back_populates="requerimiento",
        lazy="select",
        cascade="all, delete-orphan",
    )
    facturas = relationship("Factura", back_populates="requerimiento", lazy="select")

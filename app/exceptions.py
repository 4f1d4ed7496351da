"""
Domain exceptions for the MisCompras services.

Every error a service raises on purpose derives from ``MisComprasError`` and
carries a stable ``codigo`` plus the HTTP status the API layer answers with.
``app.main`` registers one handler that renders all of them as::

    {"error": "<codigo>", "detail": "<mensaje legible>"}
"""

from __future__ import annotations


class MisComprasError(Exception):
    """Base exception for all MisCompras service errors."""

    status_code: int = 500
    codigo: str = "ERROR_INTERNO"
    mensaje_por_defecto: str = "Error interno del servidor."

    def __init__(self, mensaje: str | None = None) -> None:
        self.mensaje = mensaje or self.mensaje_por_defecto
        super().__init__(self.mensaje)


class NoAutenticadoError(MisComprasError):
    """No resolvable caller identity."""

    status_code = 401
    codigo = "NO_AUTENTICADO"
    mensaje_por_defecto = "Usuario no autenticado."


class PermisoDenegadoError(MisComprasError):
    """Caller's role is not allowed to perform the operation."""

    status_code = 403
    codigo = "PERMISO_DENEGADO"
    mensaje_por_defecto = "No tiene permiso para realizar esta acción."


class NoEncontradoError(MisComprasError):
    """Referenced entity does not exist."""

    status_code = 404
    codigo = "NO_ENCONTRADO"
    mensaje_por_defecto = "Recurso no encontrado."


class DatosInvalidosError(MisComprasError):
    """Missing required field or malformed value."""

    status_code = 422
    codigo = "DATOS_INVALIDOS"
    mensaje_por_defecto = "Los datos enviados no son válidos."


class MontoInvalidoError(DatosInvalidosError):
    codigo = "MONTO_INVALIDO"
    mensaje_por_defecto = "El monto del pago es requerido y debe ser mayor a 0."


class ReglaNegocioError(MisComprasError):
    """A business rule rejects the operation."""

    status_code = 400
    codigo = "REGLA_NEGOCIO"
    mensaje_por_defecto = "La operación viola una regla de negocio."


class PagosMultiplesDeshabilitadosError(ReglaNegocioError):
    codigo = "PAGOS_MULTIPLES_DESHABILITADOS"
    mensaje_por_defecto = (
        "Este requerimiento no tiene habilitados los pagos múltiples."
    )


class MaximoPagosAlcanzadoError(ReglaNegocioError):
    codigo = "MAXIMO_PAGOS_ALCANZADO"
    mensaje_por_defecto = "Se ha alcanzado el máximo de 12 pagos."


class MontoExcedeRequerimientoError(ReglaNegocioError):
    codigo = "MONTO_EXCEDE_REQUERIMIENTO"
    mensaje_por_defecto = "El total de pagos excede el monto del requerimiento."


class OrdenNoAprobadaError(ReglaNegocioError):
    codigo = "ORDEN_NO_APROBADA"
    mensaje_por_defecto = "La orden de compra (requerimiento) no está aprobada."


class PresupuestoConRequerimientosError(ReglaNegocioError):
    codigo = "PRESUPUESTO_CON_REQUERIMIENTOS"
    mensaje_por_defecto = "No se puede eliminar, hay requerimientos asociados."


class PresupuestoYaProcesadoError(ReglaNegocioError):
    codigo = "PRESUPUESTO_YA_PROCESADO"
    mensaje_por_defecto = "Este presupuesto ya fue procesado."


class EmailDuplicadoError(ReglaNegocioError):
    codigo = "EMAIL_DUPLICADO"
    mensaje_por_defecto = "El email ya está registrado."


class UsuarioConRegistrosError(ReglaNegocioError):
    codigo = "USUARIO_CON_REGISTROS"
    mensaje_por_defecto = (
        "El usuario tiene registros asociados; desactívelo en lugar de eliminarlo."
    )


class DependenciaError(MisComprasError):
    """An external collaborator (document rendering, storage) failed."""

    status_code = 502
    codigo = "FALLA_DEPENDENCIA"
    mensaje_por_defecto = "Un servicio externo no respondió correctamente."


class DisponibleInsuficienteError(ReglaNegocioError):
    codigo = "DISPONIBLE_INSUFICIENTE"
    mensaje_por_defecto = "El presupuesto de origen no tiene suficiente disponible."


class AjusteYaProcesadoError(ReglaNegocioError):
    codigo = "AJUSTE_YA_PROCESADO"
    mensaje_por_defecto = "Esta solicitud de ajuste ya fue procesada."


class CatalogoDuplicadoError(ReglaNegocioError):
    codigo = "CATALOGO_DUPLICADO"
    mensaje_por_defecto = "Ya existe un registro con ese nombre o código."


class CatalogoEnUsoError(ReglaNegocioError):
    codigo = "CATALOGO_EN_USO"
    mensaje_por_defecto = "No se puede eliminar, hay registros asociados."

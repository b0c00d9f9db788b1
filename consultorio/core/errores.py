"""
Errores del motor de turnos.

Cada error lleva el status HTTP con el que se informa y un código estable
que el frontend usa para distinguir casos (por ejemplo, una cancelación
duplicada de un turno en estado inválido).
"""


class TurnosError(Exception):
    status_code = 500
    codigo = 5000

    def __init__(self, detail: str, codigo: int | None = None):
        super().__init__(detail)
        self.detail = detail
        if codigo is not None:
            self.codigo = codigo


class ValidacionError(TurnosError):
    """Datos inválidos o incompletos. Se rechaza antes de tocar la base."""

    status_code = 400
    codigo = 4000


class ConflictoError(TurnosError):
    status_code = 409
    codigo = 4090


class TurnoSolapadoError(ConflictoError):
    codigo = 4093


class CancelacionDuplicadaError(ConflictoError):
    """El turno ya fue cancelado.

    `origen` indica cómo se detectó: "estado" si el turno ya figuraba como
    CANCELADO al leerlo, "concurrencia" si otra solicitud lo canceló entre la
    lectura y la escritura (violación de unicidad).
    """

    codigo = 4092

    def __init__(self, detail: str, origen: str):
        super().__init__(detail)
        self.origen = origen


class NoEncontradoError(TurnosError):
    status_code = 404
    codigo = 4041


class EstadoInvalidoError(TurnosError):
    status_code = 409
    codigo = 4091


class InfraestructuraError(TurnosError):
    """La base no respondió o la transacción se abortó."""

    status_code = 500
    codigo = 5000


class ViolacionUnicidadError(TurnosError):
    status_code = 409
    codigo = 4094

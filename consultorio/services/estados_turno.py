"""
Máquina de estados del turno.

La tabla TRANSICIONES es el único lugar donde se decide si un cambio es
legal. La usan tanto la actualización directa de estado (profesional) como
la cancelación (mesa de entrada) y la reprogramación.
"""
from consultorio.core.errores import CancelacionDuplicadaError, EstadoInvalidoError
from consultorio.models.estado_turno_model import EstadoTurno

# Tipos de transición
ACTUALIZACION_DIRECTA = "actualizacion_directa"
CANCELACION = "cancelacion"
REPROGRAMACION = "reprogramacion"

ESTADOS_TERMINALES = frozenset({EstadoTurno.COMPLETADO, EstadoTurno.CANCELADO, EstadoTurno.NO_ASISTIO})

# Destinos alcanzables por actualización directa. CANCELADO queda afuera a propósito:
# cancelar genera un registro de cancelación y tiene su propia operación.
DESTINOS_DIRECTOS = frozenset({
    EstadoTurno.PROGRAMADO,
    EstadoTurno.CONFIRMADO,
    EstadoTurno.EN_SALA_DE_ESPERA,
    EstadoTurno.COMPLETADO,
    EstadoTurno.NO_ASISTIO,
})

# FSM: (estado actual, tipo de transición) -> permitido. Lo no listado es ilegal.
TRANSICIONES = {
    (EstadoTurno.PROGRAMADO, ACTUALIZACION_DIRECTA): True,
    (EstadoTurno.PROGRAMADO, CANCELACION): True,
    (EstadoTurno.PROGRAMADO, REPROGRAMACION): True,

    (EstadoTurno.CONFIRMADO, ACTUALIZACION_DIRECTA): True,
    (EstadoTurno.CONFIRMADO, CANCELACION): True,
    (EstadoTurno.CONFIRMADO, REPROGRAMACION): True,

    (EstadoTurno.EN_SALA_DE_ESPERA, ACTUALIZACION_DIRECTA): True,
    (EstadoTurno.EN_SALA_DE_ESPERA, CANCELACION): True,
    (EstadoTurno.EN_SALA_DE_ESPERA, REPROGRAMACION): True,

    # la mesa de entrada puede registrar la cancelación de un ausente (aviso tardío del paciente)
    (EstadoTurno.NO_ASISTIO, CANCELACION): True,
}


def es_terminal(estado: EstadoTurno) -> bool:
    return estado in ESTADOS_TERMINALES


def transicion_permitida(actual: EstadoTurno, tipo: str) -> bool:
    return TRANSICIONES.get((actual, tipo), False)


def validar_destino_directo(destino: EstadoTurno | None) -> EstadoTurno:
    if destino is None:
        raise EstadoInvalidoError("Falta el estado de destino.")
    if destino == EstadoTurno.CANCELADO:
        raise EstadoInvalidoError("Para cancelar utilice la operación específica de cancelación.")
    if destino not in DESTINOS_DIRECTOS:
        raise EstadoInvalidoError(f"Estado '{destino.value}' no permitido.")
    return destino


def validar_transicion(actual: EstadoTurno, tipo: str, destino: EstadoTurno | None = None) -> EstadoTurno:
    """Valida el cambio y devuelve el estado resultante.

    Para ACTUALIZACION_DIRECTA `destino` es obligatorio; la cancelación siempre
    termina en CANCELADO y la reprogramación conserva el estado actual.
    """
    if tipo == ACTUALIZACION_DIRECTA:
        validar_destino_directo(destino)

    if tipo == CANCELACION and actual == EstadoTurno.CANCELADO:
        raise CancelacionDuplicadaError("El turno ya fue cancelado previamente.", origen="estado")

    if not transicion_permitida(actual, tipo):
        raise EstadoInvalidoError(
            f"Transición prohibida: el turno está en estado '{actual.value}' y no admite {tipo}."
        )

    if tipo == CANCELACION:
        return EstadoTurno.CANCELADO
    if tipo == REPROGRAMACION:
        return actual
    return destino

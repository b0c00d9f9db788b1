"""Detección de solapamiento de turnos de un mismo profesional."""
import enum
from datetime import datetime, timedelta
from typing import Iterable

from consultorio.config import settings


class Admision(str, enum.Enum):
    ADMITIR = "ADMITIR"
    RECHAZAR = "RECHAZAR"


def fin_de_turno(inicio: datetime, duracion: int | None) -> datetime:
    return inicio + timedelta(minutes=duracion or settings.DURACION_TURNO_DEFECTO)


def buscar_conflicto(inicio: datetime, duracion: int, turnos_existentes: Iterable):
    """Devuelve el primer turno que se superpone con [inicio, inicio + duracion), o None.

    Los intervalos son semiabiertos: un turno que termina 10:30 no choca con
    otro que empieza 10:30.
    """
    fin = fin_de_turno(inicio, duracion)
    for turno in turnos_existentes:
        inicio_existente = turno.fecha
        fin_existente = fin_de_turno(inicio_existente, turno.duracion)
        if inicio < fin_existente and fin > inicio_existente:
            return turno
    return None


def verificar_solapamiento(
    profesional_id: int,
    inicio: datetime,
    duracion: int,
    turnos_existentes: Iterable,
) -> Admision:
    """Decide si un turno candidato entra en la agenda del profesional.

    `turnos_existentes` debe venir filtrado al mismo profesional y al mismo día
    calendario de `inicio`, sin turnos CANCELADO ni NO_ASISTIO.
    """
    turnos_existentes = list(turnos_existentes)
    ajenos = [t for t in turnos_existentes if t.profesional_id != profesional_id]
    if ajenos:
        raise ValueError("turnos_existentes incluye turnos de otro profesional")
    if buscar_conflicto(inicio, duracion, turnos_existentes) is not None:
        return Admision.RECHAZAR
    return Admision.ADMITIR


def franja_ocupada(instante: datetime, turnos_existentes: Iterable) -> bool:
    return any(
        turno.fecha <= instante < fin_de_turno(turno.fecha, turno.duracion)
        for turno in turnos_existentes
    )

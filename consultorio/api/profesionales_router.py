# En este archivo definimos las rutas que usa el profesional sobre su propia agenda.
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from consultorio.core.reloj import Reloj, get_reloj
from consultorio.database import get_db
from consultorio.schemas.estadisticas_schema import EstadisticasProfesional
from consultorio.schemas.turno_schema import CambioEstadoIn, TurnoOut
from consultorio.services import estadisticas_service, turnos_service

profesionales_router = APIRouter(prefix="/profesionales", tags=["profesionales"])


@profesionales_router.patch("/{profesional_id}/turnos/{turno_id}", response_model=TurnoOut)
def actualizar_estado_turno(
    profesional_id: int,
    turno_id: int,
    payload: CambioEstadoIn,
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    # si el turno no es del profesional se responde 404, igual que si no existiera
    return turnos_service.cambiar_estado_turno(db, profesional_id, turno_id, payload.estado, reloj)


@profesionales_router.get("/{profesional_id}/estadisticas", response_model=EstadisticasProfesional)
def obtener_estadisticas(
    profesional_id: int,
    desde: date | None = Query(default=None),
    hasta: date | None = Query(default=None),
    todo_el_periodo: bool = Query(default=False),
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    return estadisticas_service.estadisticas_profesional(db, profesional_id, desde, hasta, todo_el_periodo, reloj)

# En este archivo definimos las rutas o endpoints relacionados con los pedidos de turnos.
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from consultorio.core.reloj import Reloj, get_reloj
from consultorio.database import get_db
from consultorio.models.estado_turno_model import EstadoTurno
from consultorio.schemas.turno_schema import (
    CancelacionIn,
    CancelacionOut,
    HorarioDisponible,
    ReprogramacionIn,
    TurnoCreate,
    TurnoOut,
)
from consultorio.services import turnos_service

turnos_router = APIRouter(prefix="/turnos", tags=["turnos"])


@turnos_router.post("", response_model=TurnoOut, status_code=status.HTTP_201_CREATED)
def crear_turno(payload: TurnoCreate, db: Session = Depends(get_db), reloj: Reloj = Depends(get_reloj)):
    return turnos_service.reservar_turno(db, payload, reloj)


@turnos_router.get("", response_model=list[TurnoOut])
def obtener_turnos(
    db: Session = Depends(get_db),
    profesional_id: int | None = Query(default=None),
    fecha: date | None = Query(default=None),
    estado: EstadoTurno | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
):
    """
    Devuelve turnos filtrados, ordenados por fecha.
    - fecha: solo los turnos que empiezan ese día.
    - estado: solo los turnos en ese estado.
    """
    return turnos_service.listar_turnos(db, profesional_id=profesional_id, fecha=fecha, estado=estado, limite=limit)


@turnos_router.get("/disponibilidad", response_model=list[HorarioDisponible])
def obtener_disponibilidad(
    profesional_id: int = Query(...),
    fecha: date = Query(...),
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    return turnos_service.obtener_disponibilidad(db, profesional_id, fecha, reloj)


@turnos_router.get("/{turno_id}", response_model=TurnoOut)
def obtener_turno_por_id(turno_id: int, db: Session = Depends(get_db)):
    return turnos_service.obtener_turno(db, turno_id)


@turnos_router.put("/{turno_id}/reprogramar", response_model=TurnoOut)
def reprogramar_turno(
    turno_id: int,
    payload: ReprogramacionIn,
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    return turnos_service.reprogramar_turno(db, turno_id, payload, reloj)


@turnos_router.post("/{turno_id}/cancelar", response_model=CancelacionOut)
def cancelar_turno(
    turno_id: int,
    payload: CancelacionIn,
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    return turnos_service.cancelar_turno(db, turno_id, payload.motivo, payload.cancelado_por_id, reloj)

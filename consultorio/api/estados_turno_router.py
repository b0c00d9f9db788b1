from fastapi import APIRouter

from consultorio.models.estado_turno_model import ETIQUETAS_ESTADO, EstadoTurno
from consultorio.schemas.turno_schema import EstadoTurnoOut
from consultorio.services.estados_turno import es_terminal

estados_turno_router = APIRouter(prefix="/estados_turno", tags=["estados_turno"])


@estados_turno_router.get("", response_model=list[EstadoTurnoOut])
def obtener_estados_turno():
    return [
        EstadoTurnoOut(codigo=estado, etiqueta=ETIQUETAS_ESTADO[estado], terminal=es_terminal(estado))
        for estado in EstadoTurno
    ]

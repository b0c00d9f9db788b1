from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from consultorio.core.reloj import Reloj, get_reloj
from consultorio.database import get_db
from consultorio.schemas.estadisticas_schema import ResumenProfesional
from consultorio.schemas.reporte_schema import FiltroReporte, GrupoEstado, ReporteTendencias
from consultorio.services import estadisticas_service
from consultorio.services.periodos import Granularidad
from consultorio.services.reportes_service import generar_reporte_tendencias

reportes_router = APIRouter(prefix="/reportes", tags=["reportes"])


@reportes_router.get("/tendencias-crecimiento", response_model=ReporteTendencias)
def obtener_tendencias_crecimiento(
    desde: date | None = Query(default=None),
    hasta: date | None = Query(default=None),
    profesional_id: int | None = Query(default=None),
    especialidad: str | None = Query(default=None),
    estado: GrupoEstado = Query(default=GrupoEstado.TODOS),
    periodo: Granularidad = Query(default=Granularidad.MES),
    db: Session = Depends(get_db),
    reloj: Reloj = Depends(get_reloj),
):
    try:
        filtro = FiltroReporte(
            desde=desde,
            hasta=hasta,
            profesional_id=profesional_id,
            especialidad=especialidad,
            grupo_estado=estado,
            periodo=periodo,
        )
    except ValidationError as e:
        # el detalle sin "input": trae fechas que no se pueden pasar a JSON tal cual
        raise RequestValidationError(e.errors(include_url=False, include_context=False, include_input=False))
    return generar_reporte_tendencias(db, filtro, reloj)


@reportes_router.get("/profesionales", response_model=list[ResumenProfesional])
def obtener_resumen_profesionales(db: Session = Depends(get_db), reloj: Reloj = Depends(get_reloj)):
    return estadisticas_service.resumen_profesionales(db, reloj)

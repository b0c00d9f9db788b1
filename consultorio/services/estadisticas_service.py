import logging
from collections import Counter
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from consultorio.config import settings
from consultorio.core.errores import NoEncontradoError
from consultorio.core.reloj import Reloj, get_reloj
from consultorio.models import EstadoTurno, Turno
from consultorio.repositories.turnos_repository import FiltroTurnos, TurnosRepository
from consultorio.schemas.estadisticas_schema import (
    ConteoDiario,
    EstadisticasProfesional,
    ObraSocialPorcentaje,
    RangoFechas,
    ResumenProfesional,
    TurnoReciente,
)
from consultorio.services.periodos import como_datetime
from consultorio.services.reportes_service import SIN_ESPECIALIDAD, redondear

logger = logging.getLogger(__name__)

DIAS_POR_DEFECTO = 30
CANTIDAD_RECIENTES = 5
PARTICULAR = "Particular"


def _porcentaje(parte: int, total: int) -> int:
    return redondear(parte / total * 100) if total else 0


def _nombre_paciente(turno: Turno) -> str:
    if not turno.paciente:
        return "Sin paciente"
    return f"{turno.paciente.apellido}, {turno.paciente.nombre}"


def _nombre_obra_social(turno: Turno) -> str:
    return turno.obra_social.nombre if turno.obra_social else PARTICULAR


def promedio_diario(total: int, desde: date, hasta: date) -> int:
    """Turnos por día calendario del rango [desde, hasta], contando los días sin actividad.

    Un rango de menos de un día cuenta como un día.
    """
    if total == 0:
        return 0
    dias = max(1, (hasta - desde).days + 1)
    return redondear(total / dias)


def estadisticas_profesional(
    db: Session,
    profesional_id: int,
    desde: date | None = None,
    hasta: date | None = None,
    todo_el_periodo: bool = False,
    reloj: Reloj | None = None,
) -> EstadisticasProfesional:
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)
    if not repo.obtener_profesional(profesional_id):
        raise NoEncontradoError("Profesional no encontrado.")

    hoy = reloj.hoy()
    desde = desde or hoy - timedelta(days=DIAS_POR_DEFECTO)
    hasta = hasta or hoy
    if todo_el_periodo:
        primero, ultimo = repo.extremos_de_fecha(profesional_id)
        if primero is not None:
            desde, hasta = primero.date(), ultimo.date()

    turnos = repo.buscar_turnos(
        FiltroTurnos(
            profesional_id=profesional_id,
            desde=como_datetime(desde),
            hasta=como_datetime(hasta) + timedelta(days=1),
        )
    )
    total = len(turnos)
    por_estado = Counter(t.estado for t in turnos)
    por_obra_social = Counter(_nombre_obra_social(t) for t in turnos)

    cancelados = por_estado[EstadoTurno.CANCELADO] + por_estado[EstadoTurno.NO_ASISTIO]

    # los últimos turnos ya ocurridos, sin importar el rango pedido
    recientes = repo.buscar_turnos(
        FiltroTurnos(profesional_id=profesional_id, hasta=reloj.ahora()),
        limite=CANTIDAD_RECIENTES,
        descendente=True,
    )

    por_dia = Counter(t.fecha.date() for t in turnos)

    return EstadisticasProfesional(
        profesional_id=profesional_id,
        rango=RangoFechas(desde=desde, hasta=hasta, todo_el_periodo=todo_el_periodo),
        total_turnos=total,
        turnos_por_estado=dict(por_estado),
        obras_sociales=[
            ObraSocialPorcentaje(nombre=nombre, cantidad=cantidad, porcentaje=_porcentaje(cantidad, total))
            for nombre, cantidad in por_obra_social.items()
        ],
        tasa_completados=_porcentaje(por_estado[EstadoTurno.COMPLETADO], total),
        tasa_cancelacion=_porcentaje(cancelados, total),
        turnos_recientes=[
            TurnoReciente(
                id=t.id,
                fecha=t.fecha,
                paciente=_nombre_paciente(t),
                estado=t.estado,
                motivo=t.motivo,
                obra_social=_nombre_obra_social(t),
            )
            for t in recientes
        ],
        conteo_diario=[ConteoDiario(fecha=dia, cantidad=cantidad) for dia, cantidad in sorted(por_dia.items())],
        promedio_diario=promedio_diario(total, desde, hasta),
    )


def resumen_profesionales(db: Session, reloj: Reloj | None = None) -> list[ResumenProfesional]:
    """Actividad de cada profesional desde el primer día del mes anterior."""
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)
    desde = como_datetime(reloj.hoy().replace(day=1) - relativedelta(months=1))

    resumen = []
    for profesional in repo.listar_profesionales():
        turnos = repo.buscar_turnos(FiltroTurnos(profesional_id=profesional.id, desde=desde))
        completados = [t for t in turnos if t.estado == EstadoTurno.COMPLETADO]
        if completados:
            duracion = sum(t.duracion or settings.DURACION_TURNO_DEFECTO for t in completados) / len(completados)
        else:
            duracion = settings.DURACION_TURNO_DEFECTO

        resumen.append(
            ResumenProfesional(
                id=profesional.id,
                nombre=profesional.nombre_completo,
                especialidad=profesional.especialidad.nombre if profesional.especialidad else SIN_ESPECIALIDAD,
                consultas=len(turnos),
                pacientes_unicos=len({t.paciente_id for t in turnos if t.paciente_id is not None}),
                duracion_promedio=redondear(duracion),
                tasa_asistencia=_porcentaje(len(completados), len(turnos)),
            )
        )
    logger.info("Resumen de %s profesionales desde %s", len(resumen), desde.date())
    return resumen

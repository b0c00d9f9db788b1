"""
Reporte de tendencias de crecimiento.

Arma los períodos con `generar_periodos`, consulta el libro de turnos por
período y sobre el rango completo, y calcula conteos, tasas y tendencias.
Los porcentajes van en escala 0-100 y sin redondear. Si la base falla en
cualquier consulta el reporte entero falla: nunca se devuelve a medias.
"""
import logging
import math
from dataclasses import replace
from datetime import timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from consultorio.config import settings
from consultorio.core.reloj import Reloj, get_reloj
from consultorio.models import EstadoTurno, Turno
from consultorio.repositories.turnos_repository import FiltroTurnos, TurnosRepository
from consultorio.schemas.reporte_schema import (
    AsistenciaPeriodo,
    CrecimientoPacientes,
    DistribucionEspecialidad,
    EstadisticasResumen,
    FiltroReporte,
    GrupoEstado,
    ReporteTendencias,
    TiempoEspecialidad,
    TurnosDia,
    TurnosHora,
    TurnosPeriodo,
)
from consultorio.services.periodos import como_datetime, generar_periodos, rango_por_defecto

logger = logging.getLogger(__name__)

HORA_DESDE = 8
HORA_HASTA = 20  # inclusive
DIAS_SEMANA = ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom")
SIN_ESPECIALIDAD = "Sin especialidad"
SIN_DATOS = "N/A"
TOP_ESPECIALIDADES = 6
TOP_RESUMEN = 3
FACTOR_PREDICCION = 1.1

ESTADOS_POR_GRUPO = {
    GrupoEstado.TODOS: None,
    GrupoEstado.COMPLETADOS: (EstadoTurno.COMPLETADO,),
    GrupoEstado.CANCELADOS: (EstadoTurno.CANCELADO,),
    GrupoEstado.PENDIENTES: (EstadoTurno.PROGRAMADO, EstadoTurno.CONFIRMADO),
}


def redondear(valor: float) -> int:
    """Redondeo half-up (2.5 -> 3), no el redondeo bancario de round()."""
    return math.floor(valor + 0.5)


def calcular_tasa_asistencia(asistencia: int, no_asistio: int) -> float:
    total = asistencia + no_asistio
    if total == 0:
        return 0.0
    return asistencia / total * 100


def calcular_tendencia(totales: list[int]) -> float:
    """Variación porcentual del último período respecto del anterior.

    Un período anterior vacío o inexistente se toma como 0 y se divide por 1:
    sigue dando la dirección del cambio sin dividir por cero.
    """
    ultimo = totales[-1] if totales else 0
    penultimo = totales[-2] if len(totales) >= 2 else 0
    return (ultimo - penultimo) / (penultimo or 1) * 100


def histograma_horas(turnos: Iterable[Turno]) -> list[TurnosHora]:
    conteo = {hora: 0 for hora in range(HORA_DESDE, HORA_HASTA + 1)}
    for turno in turnos:
        if turno.fecha.hour in conteo:
            conteo[turno.fecha.hour] += 1
    return [TurnosHora(hora=f"{hora}:00", cantidad=cantidad) for hora, cantidad in conteo.items()]


def histograma_dias(turnos: Iterable[Turno]) -> list[TurnosDia]:
    conteo = [0] * 7
    for turno in turnos:
        conteo[turno.fecha.weekday()] += 1  # lunes = 0
    return [TurnosDia(dia=DIAS_SEMANA[i], cantidad=cantidad) for i, cantidad in enumerate(conteo)]


def _nombre_especialidad(turno: Turno) -> str:
    especialidad = turno.profesional.especialidad if turno.profesional else None
    return especialidad.nombre if especialidad else SIN_ESPECIALIDAD


def distribucion_especialidades(turnos: Iterable[Turno]) -> list[DistribucionEspecialidad]:
    # el dict conserva el orden de aparición, y sorted es estable: los empates
    # quedan en el orden en que se encontró cada especialidad
    conteo: dict[str, int] = {}
    for turno in turnos:
        nombre = _nombre_especialidad(turno)
        conteo[nombre] = conteo.get(nombre, 0) + 1

    total = sum(conteo.values())
    ordenadas = sorted(conteo.items(), key=lambda item: item[1], reverse=True)[:TOP_ESPECIALIDADES]
    return [
        DistribucionEspecialidad(
            nombre=nombre,
            cantidad=cantidad,
            porcentaje=cantidad / total * 100 if total else 0.0,
        )
        for nombre, cantidad in ordenadas
    ]


def tiempo_promedio_por_especialidad(turnos_completados: Iterable[Turno]) -> list[TiempoEspecialidad]:
    acumulado: dict[str, list[int]] = {}
    for turno in turnos_completados:
        datos = acumulado.setdefault(_nombre_especialidad(turno), [0, 0])
        datos[0] += turno.duracion or settings.DURACION_TURNO_DEFECTO
        datos[1] += 1

    tiempos = [
        TiempoEspecialidad(especialidad=nombre, minutos=redondear(total / cantidad))
        for nombre, (total, cantidad) in acumulado.items()
    ]
    return sorted(tiempos, key=lambda t: t.minutos, reverse=True)[:TOP_ESPECIALIDADES]


def _mas_concurridos(valores: list, atributo: str) -> list[str]:
    ordenados = sorted(valores, key=lambda v: v.cantidad, reverse=True)
    return [getattr(v, atributo) for v in ordenados[:TOP_RESUMEN]]


def generar_reporte_tendencias(
    db: Session,
    filtro: FiltroReporte,
    reloj: Reloj | None = None,
) -> ReporteTendencias:
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)

    if filtro.desde is None:
        desde, hasta = rango_por_defecto(filtro.periodo, reloj.hoy())
    else:
        desde, hasta = filtro.desde, filtro.hasta

    # el rango completo es [desde 00:00, día siguiente a hasta 00:00)
    rango_inicio = como_datetime(desde)
    rango_fin = como_datetime(hasta) + timedelta(days=1)
    periodos = list(generar_periodos(filtro.periodo, desde, hasta))

    base = FiltroTurnos(
        profesional_id=filtro.profesional_id,
        especialidad=filtro.especialidad,
        estados=ESTADOS_POR_GRUPO[filtro.grupo_estado],
        desde=rango_inicio,
        hasta=rango_fin,
    )
    logger.info(
        "Generando reporte de tendencias: periodo=%s desde=%s hasta=%s periodos=%s",
        filtro.periodo.value, desde, hasta, len(periodos),
    )

    # 1 y 7. Turnos y asistencia por período: una consulta agrupada por período
    turnos_por_periodo = []
    tasa_asistencia = []
    for periodo in periodos:
        inicio, fin = periodo.recortar(rango_inicio, rango_fin)
        conteo = repo.contar_por_estado(replace(base, desde=inicio, hasta=fin))

        turnos_por_periodo.append(
            TurnosPeriodo(
                periodo=periodo.etiqueta,
                total=sum(conteo.values()),
                completados=conteo.get(EstadoTurno.COMPLETADO, 0),
                cancelados=conteo.get(EstadoTurno.CANCELADO, 0),
            )
        )
        asistencia = conteo.get(EstadoTurno.COMPLETADO, 0) + conteo.get(EstadoTurno.CONFIRMADO, 0)
        no_asistio = conteo.get(EstadoTurno.NO_ASISTIO, 0)
        tasa_asistencia.append(
            AsistenciaPeriodo(
                periodo=periodo.etiqueta,
                asistencia=asistencia,
                no_asistio=no_asistio,
                tasa=calcular_tasa_asistencia(asistencia, no_asistio),
            )
        )

    # 2, 3 y 5. Distribuciones sobre los turnos no cancelados del rango completo;
    # el grupo de estado no aplica acá
    no_cancelados = repo.buscar_turnos(
        replace(base, estados=None, excluir_estados=(EstadoTurno.CANCELADO,)),
        con_especialidad=True,
    )
    turnos_por_hora = histograma_horas(no_cancelados)
    turnos_por_dia = histograma_dias(no_cancelados)
    especialidades = distribucion_especialidades(no_cancelados)

    # 6. Tiempos promedio: siempre sobre los completados
    completados = repo.buscar_turnos(replace(base, estados=(EstadoTurno.COMPLETADO,)), con_especialidad=True)
    tiempos = tiempo_promedio_por_especialidad(completados)

    # 4. Crecimiento acumulado de pacientes
    crecimiento = []
    acumulado = repo.contar_pacientes_creados_antes(rango_inicio)
    for periodo in periodos:
        inicio, fin = periodo.recortar(rango_inicio, rango_fin)
        nuevos = repo.contar_pacientes_creados_entre(inicio, fin)
        acumulado += nuevos
        crecimiento.append(CrecimientoPacientes(periodo=periodo.etiqueta, nuevos=nuevos, total=acumulado))

    # 8. Resumen
    tendencia = calcular_tendencia([p.total for p in turnos_por_periodo])
    tasa_promedio = calcular_tasa_asistencia(
        sum(t.asistencia for t in tasa_asistencia),
        sum(t.no_asistio for t in tasa_asistencia),
    )
    pico_hora = max((h.cantidad for h in turnos_por_hora), default=0)

    resumen = EstadisticasResumen(
        tendencia=tendencia,
        horas_mas_concurridas=_mas_concurridos(turnos_por_hora, "hora"),
        dias_mas_concurridos=_mas_concurridos(turnos_por_dia, "dia"),
        especialidad_mas_popular=especialidades[0].nombre if especialidades else SIN_DATOS,
        tasa_asistencia_promedio=tasa_promedio,
        prediccion_proximo_periodo=tendencia * FACTOR_PREDICCION,
        crecimiento_pacientes_ultimo_periodo=crecimiento[-1].nuevos if crecimiento else 0,
        ingresos_potenciales_hora_pico=pico_hora * settings.VALOR_CONSULTA_ESTIMADO,
        eficiencia_operativa=min(95, 70 + tasa_promedio * 0.3),
    )

    return ReporteTendencias(
        desde=desde,
        hasta=hasta,
        periodo=filtro.periodo,
        turnos_por_periodo=turnos_por_periodo,
        turnos_por_hora=turnos_por_hora,
        turnos_por_dia=turnos_por_dia,
        crecimiento_pacientes=crecimiento,
        distribucion_especialidades=especialidades,
        tiempo_promedio_por_especialidad=tiempos,
        tasa_asistencia=tasa_asistencia,
        estadisticas_resumen=resumen,
    )

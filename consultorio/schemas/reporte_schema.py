import enum
from datetime import date

from pydantic import BaseModel, field_validator, model_validator

from consultorio.services.periodos import Granularidad


class GrupoEstado(str, enum.Enum):
    TODOS = "todos"
    COMPLETADOS = "completados"
    CANCELADOS = "cancelados"
    PENDIENTES = "pendientes"


class FiltroReporte(BaseModel):
    """Filtros del reporte de tendencias.

    - desde / hasta: días inclusive. Van juntos; si faltan ambos se usa el
      rango por defecto de la granularidad.
    - profesional_id: limita a los turnos de un profesional.
    - especialidad: nombre de la especialidad del profesional ("todas" = sin filtro).
    - grupo_estado: completados, cancelados o pendientes (programados + confirmados).
    - periodo: granularidad de los períodos.
    """

    desde: date | None = None
    hasta: date | None = None
    profesional_id: int | None = None
    especialidad: str | None = None
    grupo_estado: GrupoEstado = GrupoEstado.TODOS
    periodo: Granularidad = Granularidad.MES

    @field_validator("especialidad")
    @classmethod
    def _todas_es_sin_filtro(cls, v: str | None) -> str | None:
        if v is None or v.strip().lower() in ("", "todas"):
            return None
        return v.strip()

    @model_validator(mode="after")
    def _rango_completo(self):
        if (self.desde is None) != (self.hasta is None):
            raise ValueError("Debe indicar ambas fechas (desde y hasta) o ninguna")
        return self


class TurnosPeriodo(BaseModel):
    periodo: str
    total: int
    completados: int
    cancelados: int


class TurnosHora(BaseModel):
    hora: str
    cantidad: int


class TurnosDia(BaseModel):
    dia: str
    cantidad: int


class CrecimientoPacientes(BaseModel):
    periodo: str
    nuevos: int
    total: int


class DistribucionEspecialidad(BaseModel):
    nombre: str
    cantidad: int
    porcentaje: float


class TiempoEspecialidad(BaseModel):
    especialidad: str
    minutos: int


class AsistenciaPeriodo(BaseModel):
    periodo: str
    asistencia: int
    no_asistio: int
    tasa: float


class EstadisticasResumen(BaseModel):
    tendencia: float
    horas_mas_concurridas: list[str]
    dias_mas_concurridos: list[str]
    especialidad_mas_popular: str
    tasa_asistencia_promedio: float
    prediccion_proximo_periodo: float
    crecimiento_pacientes_ultimo_periodo: int
    ingresos_potenciales_hora_pico: float
    eficiencia_operativa: float


class ReporteTendencias(BaseModel):
    desde: date
    hasta: date
    periodo: Granularidad
    turnos_por_periodo: list[TurnosPeriodo]
    turnos_por_hora: list[TurnosHora]
    turnos_por_dia: list[TurnosDia]
    crecimiento_pacientes: list[CrecimientoPacientes]
    distribucion_especialidades: list[DistribucionEspecialidad]
    tiempo_promedio_por_especialidad: list[TiempoEspecialidad]
    tasa_asistencia: list[AsistenciaPeriodo]
    estadisticas_resumen: EstadisticasResumen

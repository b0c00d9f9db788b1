from datetime import date, datetime

from pydantic import BaseModel

from consultorio.models.estado_turno_model import EstadoTurno


class RangoFechas(BaseModel):
    desde: date
    hasta: date
    todo_el_periodo: bool


class ObraSocialPorcentaje(BaseModel):
    nombre: str
    cantidad: int
    porcentaje: int


class TurnoReciente(BaseModel):
    id: int
    fecha: datetime
    paciente: str
    estado: EstadoTurno
    motivo: str | None
    obra_social: str


class ConteoDiario(BaseModel):
    fecha: date
    cantidad: int


class EstadisticasProfesional(BaseModel):
    profesional_id: int
    rango: RangoFechas
    total_turnos: int
    turnos_por_estado: dict[EstadoTurno, int]
    obras_sociales: list[ObraSocialPorcentaje]
    tasa_completados: int
    tasa_cancelacion: int
    turnos_recientes: list[TurnoReciente]
    conteo_diario: list[ConteoDiario]
    promedio_diario: int


class ResumenProfesional(BaseModel):
    id: int
    nombre: str
    especialidad: str
    consultas: int
    pacientes_unicos: int
    duracion_promedio: int
    tasa_asistencia: int

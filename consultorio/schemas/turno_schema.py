from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from consultorio.config import settings
from consultorio.core.reloj import a_hora_local
from consultorio.models.estado_turno_model import EstadoTurno, TipoConsulta


class PacienteNuevo(BaseModel): #datos mínimos para dar de alta un paciente al momento de reservar
    nombre: str = Field(min_length=1)
    apellido: str = Field(min_length=1)
    dni: str = Field(pattern=r"^\d{7,8}$")
    fecha_nacimiento: date
    genero: Literal["Masculino", "Femenino", "Otro"]
    telefono: str | None = None
    celular: str | None = None
    email: str | None = None

    @field_validator("nombre", "apellido")
    @classmethod
    def _sin_espacios(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("no puede estar vacío")
        return v


class TurnoCreate(BaseModel): #lo que se necesita para reservar un turno
    paciente_id: int | None = None
    paciente_nuevo: PacienteNuevo | None = None
    profesional_id: int
    fecha: datetime
    duracion: int = Field(default=settings.DURACION_TURNO_DEFECTO, ge=settings.DURACION_TURNO_MIN, le=settings.DURACION_TURNO_MAX)
    tipo_consulta: TipoConsulta
    obra_social_id: int | None = None
    numero_afiliado: str | None = None
    autorizacion: str | None = None
    copago: Decimal | None = Field(default=None, gt=0)
    motivo: str | None = None
    observaciones: str | None = None
    creado_por_id: int | None = None

    @field_validator("fecha")
    @classmethod
    def _a_hora_local(cls, v: datetime) -> datetime:
        return a_hora_local(v)

    @model_validator(mode="after")
    def _validar_coherencia(self):
        # Debe tener paciente_id O paciente_nuevo, pero no ambos
        if (self.paciente_id is None) == (self.paciente_nuevo is None):
            raise ValueError("Debe seleccionar un paciente existente o crear uno nuevo")
        if self.tipo_consulta == TipoConsulta.OBRA_SOCIAL:
            if self.obra_social_id is None:
                raise ValueError("Debe seleccionar una obra social")
            if self.copago is not None:
                raise ValueError("Una consulta por obra social no lleva copago")
        else:
            if self.copago is None:
                raise ValueError("Debe especificar el precio de la consulta")
            if self.obra_social_id is not None:
                raise ValueError("Una consulta particular no lleva obra social")
        return self


class TurnoOut(BaseModel):
    id: int
    profesional_id: int
    paciente_id: int | None
    fecha: datetime
    duracion: int | None
    estado: EstadoTurno
    tipo_consulta: TipoConsulta
    obra_social_id: int | None
    numero_afiliado: str | None
    copago: Decimal | None
    autorizacion: str | None
    motivo: str | None
    observaciones: str | None
    creado_por_id: int | None
    creado_en: datetime | None

    model_config = {
        "from_attributes": True
    }


class CambioEstadoIn(BaseModel):
    estado: EstadoTurno


class CancelacionIn(BaseModel):
    motivo: str
    cancelado_por_id: int

    @field_validator("motivo")
    @classmethod
    def _motivo_no_vacio(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("El motivo de la cancelación es obligatorio")
        return v


class CancelacionOut(BaseModel):
    id: int
    turno_id: int
    paciente_id: int
    cancelado_por_id: int
    motivo: str
    cancelado_en: datetime
    turno: TurnoOut

    model_config = {
        "from_attributes": True
    }


class ReprogramacionIn(BaseModel):
    fecha: datetime
    profesional_id: int
    motivo: str | None = None
    observaciones: str | None = None

    @field_validator("fecha")
    @classmethod
    def _a_hora_local(cls, v: datetime) -> datetime:
        return a_hora_local(v)


class HorarioDisponible(BaseModel):
    fecha: datetime
    hora: str
    disponible: bool
    profesional_id: int


class EstadoTurnoOut(BaseModel):
    codigo: EstadoTurno
    etiqueta: str
    terminal: bool

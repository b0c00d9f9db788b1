from consultorio.models.cancelacion_turno_model import CancelacionTurno
from consultorio.models.estado_turno_model import EstadoTurno, TipoConsulta
from consultorio.models.obra_social_model import ObraSocial
from consultorio.models.paciente_model import Paciente
from consultorio.models.profesional_model import Especialidad, Profesional
from consultorio.models.turno_model import Turno
from consultorio.models.usuario_model import Usuario

__all__ = [
    "CancelacionTurno",
    "Especialidad",
    "EstadoTurno",
    "ObraSocial",
    "Paciente",
    "Profesional",
    "TipoConsulta",
    "Turno",
    "Usuario",
]

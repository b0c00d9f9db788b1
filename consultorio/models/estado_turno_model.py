import enum


class EstadoTurno(str, enum.Enum):
    PROGRAMADO = "PROGRAMADO"
    CONFIRMADO = "CONFIRMADO"
    EN_SALA_DE_ESPERA = "EN_SALA_DE_ESPERA"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"
    NO_ASISTIO = "NO_ASISTIO"


ETIQUETAS_ESTADO = {
    EstadoTurno.PROGRAMADO: "Programado",
    EstadoTurno.CONFIRMADO: "Confirmado",
    EstadoTurno.EN_SALA_DE_ESPERA: "En sala de espera",
    EstadoTurno.COMPLETADO: "Completado",
    EstadoTurno.CANCELADO: "Cancelado",
    EstadoTurno.NO_ASISTIO: "No asistió",
}

# estados que no ocupan la agenda del profesional
ESTADOS_LIBERAN_AGENDA = (EstadoTurno.CANCELADO, EstadoTurno.NO_ASISTIO)


class TipoConsulta(str, enum.Enum):
    OBRA_SOCIAL = "OBRA_SOCIAL"
    PARTICULAR = "PARTICULAR"

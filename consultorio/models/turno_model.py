from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import relationship

from consultorio.database import Base
from consultorio.models.estado_turno_model import EstadoTurno, TipoConsulta

_ESTADO_ACTIVO = text("estado NOT IN ('CANCELADO', 'NO_ASISTIO')")


class Turno(Base):
    __tablename__ = "turnos"

    id = Column(Integer, primary_key=True)
    profesional_id = Column(Integer, ForeignKey("profesionales.id"), nullable=False, index=True)
    # SET NULL: el historial del turno sobrevive aunque se elimine el paciente
    paciente_id = Column(Integer, ForeignKey("pacientes.id", ondelete="SET NULL"), nullable=True)

    fecha = Column(DateTime, nullable=False, index=True)
    duracion = Column(Integer, default=30)  # minutos; NULL en turnos viejos equivale a 30
    estado = Column(
        Enum(EstadoTurno, name="estado_turno", native_enum=False, length=20),
        nullable=False,
        default=EstadoTurno.PROGRAMADO,
    )

    tipo_consulta = Column(Enum(TipoConsulta, name="tipo_consulta", native_enum=False, length=20), nullable=False)
    obra_social_id = Column(Integer, ForeignKey("obras_sociales.id"))
    numero_afiliado = Column(String(50))
    copago = Column(Numeric(10, 2))
    autorizacion = Column(String(100))

    motivo = Column(String(255))
    observaciones = Column(Text)

    creado_por_id = Column(Integer, ForeignKey("usuarios.id"))
    creado_en = Column(DateTime)
    actualizado_en = Column(DateTime)

    #relationships para devolver paciente, profesional, etc al frontend
    paciente = relationship("Paciente")
    profesional = relationship("Profesional")
    obra_social = relationship("ObraSocial")
    cancelacion = relationship("CancelacionTurno", back_populates="turno", uselist=False)

    __table_args__ = (
        # un profesional no puede tener dos turnos activos que empiecen en el mismo instante;
        # respalda a nivel base el control de solapamiento ante reservas concurrentes
        Index(
            "uq_turnos_profesional_fecha_activo",
            "profesional_id",
            "fecha",
            unique=True,
            sqlite_where=_ESTADO_ACTIVO,
            postgresql_where=_ESTADO_ACTIVO,
        ),
    )

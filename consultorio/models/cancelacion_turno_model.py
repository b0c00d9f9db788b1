from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from consultorio.database import Base


class CancelacionTurno(Base):
    __tablename__ = "cancelaciones_turno"

    id = Column(Integer, primary_key=True)
    turno_id = Column(Integer, ForeignKey("turnos.id"), nullable=False, unique=True)
    paciente_id = Column(Integer, ForeignKey("pacientes.id"), nullable=False)
    cancelado_por_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False)
    motivo = Column(String(500), nullable=False)
    cancelado_en = Column(DateTime, nullable=False)

    turno = relationship("Turno", back_populates="cancelacion")
    paciente = relationship("Paciente")
    cancelado_por = relationship("Usuario")

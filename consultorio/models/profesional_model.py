from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from consultorio.database import Base


class Especialidad(Base):
    __tablename__ = "especialidades"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False, unique=True)


class Profesional(Base):
    __tablename__ = "profesionales"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100))
    especialidad_id = Column(Integer, ForeignKey("especialidades.id"))
    activo = Column(Boolean, nullable=False, default=True)

    especialidad = relationship("Especialidad")

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido or ''}".strip()

from sqlalchemy import Boolean, Column, Integer, String

from consultorio.database import Base


class Usuario(Base):
    """Personal que opera el sistema (mesa de entrada, gerencia)."""

    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(150), nullable=False)
    rol = Column(String(30), nullable=False)  # MESA_ENTRADA / GERENTE / PROFESIONAL
    activo = Column(Boolean, nullable=False, default=True)

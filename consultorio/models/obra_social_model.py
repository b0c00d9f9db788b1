from sqlalchemy import Boolean, Column, Integer, String

from consultorio.database import Base


class ObraSocial(Base):
    __tablename__ = "obras_sociales"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(150), nullable=False, unique=True)
    activa = Column(Boolean, nullable=False, default=True)

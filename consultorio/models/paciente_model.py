from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from consultorio.database import Base


class Paciente(Base):
    __tablename__ = "pacientes"

    id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False)
    dni = Column(String(8), nullable=False, unique=True)
    fecha_nacimiento = Column(Date)
    genero = Column(String(20))
    telefono = Column(String(30))
    celular = Column(String(30))
    email = Column(String(255))

    creado_por_id = Column(Integer, ForeignKey("usuarios.id"))
    creado_en = Column(DateTime, nullable=False, index=True)

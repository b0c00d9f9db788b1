from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from consultorio.core.reloj import RelojFijo, get_reloj
from consultorio.database import activar_foreign_keys_sqlite, crear_tablas, get_db
from consultorio.main import app
from consultorio.models import (
    Especialidad,
    EstadoTurno,
    ObraSocial,
    Paciente,
    Profesional,
    TipoConsulta,
    Turno,
    Usuario,
)
from consultorio.schemas.turno_schema import TurnoCreate

AHORA = datetime(2024, 5, 15, 9, 0)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", activar_foreign_keys_sqlite)
    crear_tablas(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def reloj():
    return RelojFijo(AHORA)


@pytest.fixture()
def clinica(db) -> dict:
    """Consultorio mínimo: dos especialidades, tres profesionales, dos pacientes, una obra social."""
    cardiologia = Especialidad(nombre="Cardiología")
    pediatria = Especialidad(nombre="Pediatría")
    db.add_all([cardiologia, pediatria])
    db.flush()

    cardiologo = Profesional(nombre="Ana", apellido="Pérez", especialidad_id=cardiologia.id)
    pediatra = Profesional(nombre="Luis", apellido="Gómez", especialidad_id=pediatria.id)
    generalista = Profesional(nombre="Marta", apellido="Ríos")
    obra_social = ObraSocial(nombre="OSDE")
    mesa_entrada = Usuario(nombre="Recepción", rol="MESA_ENTRADA")
    db.add_all([cardiologo, pediatra, generalista, obra_social, mesa_entrada])
    db.flush()

    paciente = Paciente(
        nombre="Juan", apellido="López", dni="30111222",
        fecha_nacimiento=date(1985, 3, 2), genero="Masculino",
        creado_en=datetime(2024, 1, 10, 12, 0),
    )
    otro_paciente = Paciente(
        nombre="Sofía", apellido="Díaz", dni="40222333",
        fecha_nacimiento=date(1995, 7, 21), genero="Femenino",
        creado_en=datetime(2024, 2, 20, 12, 0),
    )
    db.add_all([paciente, otro_paciente])
    db.commit()

    return {
        "cardiologo_id": cardiologo.id,
        "pediatra_id": pediatra.id,
        "generalista_id": generalista.id,
        "paciente_id": paciente.id,
        "otro_paciente_id": otro_paciente.id,
        "obra_social_id": obra_social.id,
        "usuario_id": mesa_entrada.id,
    }


@pytest.fixture()
def nuevo_turno(db, clinica):
    """Inserta un turno directamente en la base, salteando el servicio de reservas."""

    def _crear(fecha: datetime, estado=EstadoTurno.PROGRAMADO, profesional_id=None, duracion=30, **extra):
        turno = Turno(
            profesional_id=profesional_id or clinica["cardiologo_id"],
            paciente_id=extra.pop("paciente_id", clinica["paciente_id"]),
            fecha=fecha,
            duracion=duracion,
            estado=estado,
            tipo_consulta=TipoConsulta.PARTICULAR,
            copago=Decimal("5000"),
            creado_en=AHORA,
            **extra,
        )
        db.add(turno)
        db.commit()
        return turno

    return _crear


@pytest.fixture()
def solicitud(clinica):
    """Arma un TurnoCreate particular para el cardiólogo con los datos por defecto del consultorio."""

    def _armar(fecha: datetime, duracion: int = 30, **extra) -> TurnoCreate:
        datos = {
            "paciente_id": clinica["paciente_id"],
            "profesional_id": clinica["cardiologo_id"],
            "fecha": fecha,
            "duracion": duracion,
            "tipo_consulta": TipoConsulta.PARTICULAR,
            "copago": Decimal("5000"),
        }
        datos.update(extra)
        return TurnoCreate(**datos)

    return _armar


@pytest.fixture()
def client(session_factory, reloj):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_reloj] = lambda: reloj
    yield TestClient(app)
    app.dependency_overrides.clear()

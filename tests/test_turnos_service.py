import random
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from consultorio.core.errores import (
    CancelacionDuplicadaError,
    ConflictoError,
    EstadoInvalidoError,
    NoEncontradoError,
    TurnoSolapadoError,
    ValidacionError,
)
from consultorio.models import CancelacionTurno, EstadoTurno, Paciente, TipoConsulta, Turno
from consultorio.repositories.turnos_repository import TurnosRepository
from consultorio.schemas.turno_schema import ReprogramacionIn, TurnoCreate
from consultorio.services import turnos_service


def test_reservar_turno(db, clinica, solicitud, reloj):
    turno = turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0)), reloj)

    assert turno.id is not None
    assert turno.estado == EstadoTurno.PROGRAMADO
    assert turno.creado_en == reloj.ahora()

    listados = turnos_service.listar_turnos(db, profesional_id=clinica["cardiologo_id"], fecha=date(2024, 5, 20))
    assert [t.id for t in listados] == [turno.id]
    assert listados[0].estado == EstadoTurno.PROGRAMADO


def test_reserva_solapada_se_rechaza_y_la_contigua_se_admite(db, clinica, solicitud, reloj):
    turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0)), reloj)

    with pytest.raises(TurnoSolapadoError):
        turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 15)), reloj)

    contiguo = turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 30)), reloj)
    assert contiguo.estado == EstadoTurno.PROGRAMADO
    assert db.query(Turno).count() == 2


def test_reservas_admitidas_nunca_se_superponen(db, clinica, solicitud, reloj):
    azar = random.Random(20240520)
    apertura = datetime(2024, 5, 20, 8, 0)
    rechazadas = []

    for _ in range(60):
        inicio = apertura + timedelta(minutes=5 * azar.randint(0, 120))
        duracion = azar.choice([15, 20, 30, 45, 60, 90, 120])
        try:
            turnos_service.reservar_turno(db, solicitud(inicio, duracion=duracion), reloj)
        except TurnoSolapadoError:
            rechazadas.append((inicio, inicio + timedelta(minutes=duracion)))

    admitidos = [(t.fecha, t.fecha + timedelta(minutes=t.duracion)) for t in db.query(Turno).all()]
    assert len(admitidos) > 1 and rechazadas

    for i, (inicio_a, fin_a) in enumerate(admitidos):
        for inicio_b, fin_b in admitidos[i + 1:]:
            assert fin_a <= inicio_b or fin_b <= inicio_a

    # cada rechazo se explica por algún turno admitido
    for inicio, fin in rechazadas:
        assert any(inicio < fin_a and inicio_a < fin for inicio_a, fin_a in admitidos)


def test_otro_profesional_no_choca(db, clinica, solicitud, reloj):
    turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0)), reloj)
    turno = turnos_service.reservar_turno(
        db, solicitud(datetime(2024, 5, 20, 10, 0), profesional_id=clinica["pediatra_id"]), reloj
    )
    assert turno.profesional_id == clinica["pediatra_id"]


@pytest.mark.parametrize("estado", [EstadoTurno.CANCELADO, EstadoTurno.NO_ASISTIO])
def test_turnos_que_liberan_agenda_no_bloquean(db, solicitud, nuevo_turno, reloj, estado):
    nuevo_turno(datetime(2024, 5, 20, 10, 0), estado=estado)
    turno = turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0)), reloj)
    assert turno.estado == EstadoTurno.PROGRAMADO


def test_indice_unico_respalda_el_control_de_solapamiento(db, solicitud, nuevo_turno, reloj, monkeypatch):
    # simula otra reserva que se coló entre el control y el INSERT
    nuevo_turno(datetime(2024, 5, 20, 10, 0))
    monkeypatch.setattr(TurnosRepository, "turnos_activos_del_dia", lambda self, *a, **kw: [])

    with pytest.raises(TurnoSolapadoError):
        turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0)), reloj)
    assert db.query(Turno).count() == 1


def test_fecha_con_offset_se_pasa_a_hora_local(db, solicitud, reloj):
    turno = turnos_service.reservar_turno(
        db, solicitud(datetime(2024, 5, 20, 13, 0, tzinfo=timezone.utc)), reloj
    )
    assert turno.fecha == datetime(2024, 5, 20, 10, 0)


def test_reservar_con_paciente_nuevo(db, clinica, reloj):
    datos = TurnoCreate(
        paciente_nuevo={
            "nombre": "Carla",
            "apellido": "Suárez",
            "dni": "35123456",
            "fecha_nacimiento": date(1990, 1, 1),
            "genero": "Femenino",
        },
        profesional_id=clinica["cardiologo_id"],
        fecha=datetime(2024, 5, 21, 9, 0),
        tipo_consulta=TipoConsulta.OBRA_SOCIAL,
        obra_social_id=clinica["obra_social_id"],
    )
    turno = turnos_service.reservar_turno(db, datos, reloj)

    paciente = db.get(Paciente, turno.paciente_id)
    assert paciente.dni == "35123456"
    assert paciente.creado_en == reloj.ahora()
    assert turno.duracion == 30


def test_paciente_nuevo_con_dni_existente(db, clinica, reloj):
    datos = TurnoCreate(
        paciente_nuevo={
            "nombre": "Otro",
            "apellido": "López",
            "dni": "30111222",
            "fecha_nacimiento": date(1985, 3, 2),
            "genero": "Masculino",
        },
        profesional_id=clinica["cardiologo_id"],
        fecha=datetime(2024, 5, 21, 9, 0),
        tipo_consulta=TipoConsulta.PARTICULAR,
        copago=1000,
    )
    with pytest.raises(ConflictoError):
        turnos_service.reservar_turno(db, datos, reloj)
    assert db.query(Turno).count() == 0


def test_datos_de_reserva_incoherentes(clinica):
    with pytest.raises(ValidationError):
        TurnoCreate(
            paciente_id=clinica["paciente_id"],
            profesional_id=clinica["cardiologo_id"],
            fecha=datetime(2024, 5, 21, 9, 0),
            tipo_consulta=TipoConsulta.OBRA_SOCIAL,
        )
    with pytest.raises(ValidationError):
        TurnoCreate(
            profesional_id=clinica["cardiologo_id"],
            fecha=datetime(2024, 5, 21, 9, 0),
            tipo_consulta=TipoConsulta.PARTICULAR,
            copago=1000,
        )
    with pytest.raises(ValidationError):
        TurnoCreate(
            paciente_id=clinica["paciente_id"],
            profesional_id=clinica["cardiologo_id"],
            fecha=datetime(2024, 5, 21, 9, 0),
            duracion=10,
            tipo_consulta=TipoConsulta.PARTICULAR,
            copago=1000,
        )


def test_profesional_inexistente(db, solicitud, reloj):
    with pytest.raises(NoEncontradoError):
        turnos_service.reservar_turno(db, solicitud(datetime(2024, 5, 20, 10, 0), profesional_id=999), reloj)


# --- cambio de estado -------------------------------------------------------


def test_cambiar_estado(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))

    actualizado = turnos_service.cambiar_estado_turno(
        db, clinica["cardiologo_id"], turno.id, EstadoTurno.CONFIRMADO, reloj
    )

    assert actualizado.estado == EstadoTurno.CONFIRMADO
    assert actualizado.actualizado_en == reloj.ahora()


def test_cambiar_estado_a_cancelado_se_rechaza(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))

    with pytest.raises(EstadoInvalidoError):
        turnos_service.cambiar_estado_turno(db, clinica["cardiologo_id"], turno.id, EstadoTurno.CANCELADO, reloj)

    db.refresh(turno)
    assert turno.estado == EstadoTurno.PROGRAMADO
    assert db.query(CancelacionTurno).count() == 0


def test_cambiar_estado_de_turno_ajeno(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))

    with pytest.raises(NoEncontradoError):
        turnos_service.cambiar_estado_turno(db, clinica["pediatra_id"], turno.id, EstadoTurno.CONFIRMADO, reloj)


def test_estado_terminal_no_se_modifica(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), estado=EstadoTurno.COMPLETADO)

    with pytest.raises(EstadoInvalidoError):
        turnos_service.cambiar_estado_turno(db, clinica["cardiologo_id"], turno.id, EstadoTurno.PROGRAMADO, reloj)


# --- cancelación ------------------------------------------------------------


def test_cancelar_turno(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), estado=EstadoTurno.CONFIRMADO)

    cancelacion = turnos_service.cancelar_turno(db, turno.id, "Viaje", clinica["usuario_id"], reloj)

    assert cancelacion.turno_id == turno.id
    assert cancelacion.paciente_id == clinica["paciente_id"]
    assert cancelacion.cancelado_en == reloj.ahora()
    assert cancelacion.turno.estado == EstadoTurno.CANCELADO


def test_cancelar_dos_veces(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))
    turnos_service.cancelar_turno(db, turno.id, "Viaje", clinica["usuario_id"], reloj)

    with pytest.raises(CancelacionDuplicadaError) as exc_info:
        turnos_service.cancelar_turno(db, turno.id, "Otra vez", clinica["usuario_id"], reloj)

    assert exc_info.value.origen == "estado"
    assert db.query(CancelacionTurno).count() == 1


def test_cancelacion_concurrente(db, clinica, nuevo_turno, reloj):
    # otra solicitud ya dejó su registro pero este proceso todavía lee el turno como PROGRAMADO
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))
    db.add(
        CancelacionTurno(
            turno_id=turno.id,
            paciente_id=clinica["paciente_id"],
            cancelado_por_id=clinica["usuario_id"],
            motivo="Primera",
            cancelado_en=reloj.ahora(),
        )
    )
    db.commit()

    with pytest.raises(CancelacionDuplicadaError) as exc_info:
        turnos_service.cancelar_turno(db, turno.id, "Segunda", clinica["usuario_id"], reloj)

    assert exc_info.value.origen == "concurrencia"
    db.refresh(turno)
    assert turno.estado == EstadoTurno.PROGRAMADO
    assert db.query(CancelacionTurno).count() == 1


def test_cancelar_un_completado(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), estado=EstadoTurno.COMPLETADO)

    with pytest.raises(EstadoInvalidoError):
        turnos_service.cancelar_turno(db, turno.id, "Tarde", clinica["usuario_id"], reloj)
    assert db.query(CancelacionTurno).count() == 0


def test_cancelar_un_ausente(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 13, 10, 0), estado=EstadoTurno.NO_ASISTIO)

    cancelacion = turnos_service.cancelar_turno(db, turno.id, "Avisó tarde", clinica["usuario_id"], reloj)
    assert cancelacion.turno.estado == EstadoTurno.CANCELADO


def test_cancelar_turno_inexistente(db, clinica, reloj):
    with pytest.raises(NoEncontradoError):
        turnos_service.cancelar_turno(db, 999, "Viaje", clinica["usuario_id"], reloj)


def test_cancelar_turno_sin_paciente(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), paciente_id=None)

    with pytest.raises(ValidacionError):
        turnos_service.cancelar_turno(db, turno.id, "Viaje", clinica["usuario_id"], reloj)


def test_cancelar_con_usuario_inexistente(db, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))

    with pytest.raises(NoEncontradoError):
        turnos_service.cancelar_turno(db, turno.id, "Viaje", 999, reloj)
    db.refresh(turno)
    assert turno.estado == EstadoTurno.PROGRAMADO


# --- reprogramación y disponibilidad ------------------------------------------


def test_reprogramar_turno(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), duracion=45, estado=EstadoTurno.CONFIRMADO)

    reprogramado = turnos_service.reprogramar_turno(
        db,
        turno.id,
        ReprogramacionIn(fecha=datetime(2024, 5, 20, 10, 15), profesional_id=clinica["cardiologo_id"]),
        reloj,
    )

    # se solapa consigo mismo en su horario anterior, eso no cuenta
    assert reprogramado.fecha == datetime(2024, 5, 20, 10, 15)
    assert reprogramado.duracion == 45
    assert reprogramado.estado == EstadoTurno.CONFIRMADO


def test_reprogramar_a_horario_ocupado(db, clinica, nuevo_turno, reloj):
    nuevo_turno(datetime(2024, 5, 20, 11, 0))
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0))

    with pytest.raises(TurnoSolapadoError):
        turnos_service.reprogramar_turno(
            db,
            turno.id,
            ReprogramacionIn(fecha=datetime(2024, 5, 20, 10, 45), profesional_id=clinica["cardiologo_id"]),
            reloj,
        )


def test_reprogramar_un_cancelado(db, clinica, nuevo_turno, reloj):
    turno = nuevo_turno(datetime(2024, 5, 20, 10, 0), estado=EstadoTurno.CANCELADO)

    with pytest.raises(EstadoInvalidoError):
        turnos_service.reprogramar_turno(
            db,
            turno.id,
            ReprogramacionIn(fecha=datetime(2024, 5, 21, 10, 0), profesional_id=clinica["cardiologo_id"]),
            reloj,
        )


def test_disponibilidad(db, clinica, nuevo_turno, reloj):
    nuevo_turno(datetime(2024, 5, 15, 10, 0))
    nuevo_turno(datetime(2024, 5, 15, 11, 0), estado=EstadoTurno.CANCELADO)

    horarios = turnos_service.obtener_disponibilidad(db, clinica["cardiologo_id"], date(2024, 5, 15), reloj)
    por_hora = {h.hora: h.disponible for h in horarios}

    assert len(horarios) == 20
    assert horarios[0].hora == "08:00" and horarios[-1].hora == "17:30"
    assert not por_hora["08:30"]  # ya pasó
    assert not por_hora["09:00"]
    assert por_hora["09:30"]
    assert not por_hora["10:00"]
    assert por_hora["10:30"]
    assert por_hora["11:00"]


def test_obtener_turno_inexistente(db):
    with pytest.raises(NoEncontradoError):
        turnos_service.obtener_turno(db, 999)

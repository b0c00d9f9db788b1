from datetime import datetime
from types import SimpleNamespace

import pytest

from consultorio.services.solapamiento import (
    Admision,
    buscar_conflicto,
    fin_de_turno,
    franja_ocupada,
    verificar_solapamiento,
)


def _turno(hora: int, minuto: int = 0, duracion: int | None = 30, profesional_id: int = 1):
    return SimpleNamespace(
        fecha=datetime(2024, 5, 20, hora, minuto),
        duracion=duracion,
        profesional_id=profesional_id,
    )


def test_agenda_vacia_admite():
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 0), 30, []) == Admision.ADMITIR


def test_turno_que_empieza_dentro_de_otro_se_rechaza():
    existentes = [_turno(10, 0)]
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 15), 30, existentes) == Admision.RECHAZAR


def test_turno_que_contiene_a_otro_se_rechaza():
    existentes = [_turno(10, 15, duracion=15)]
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 0), 60, existentes) == Admision.RECHAZAR


def test_turnos_contiguos_no_chocan():
    existentes = [_turno(10, 0)]
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 30), 30, existentes) == Admision.ADMITIR
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 9, 30), 30, existentes) == Admision.ADMITIR


def test_duracion_nula_equivale_a_treinta_minutos():
    existentes = [_turno(10, 0, duracion=None)]
    assert fin_de_turno(existentes[0].fecha, None) == datetime(2024, 5, 20, 10, 30)
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 29), 15, existentes) == Admision.RECHAZAR
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 30), 15, existentes) == Admision.ADMITIR


def test_turnos_de_otro_profesional_son_un_error_de_uso():
    with pytest.raises(ValueError):
        verificar_solapamiento(1, datetime(2024, 5, 20, 12, 0), 30, [_turno(10, 0, profesional_id=2)])


def test_acepta_cualquier_iterable():
    existentes = (t for t in [_turno(10, 0)])
    assert verificar_solapamiento(1, datetime(2024, 5, 20, 10, 10), 30, existentes) == Admision.RECHAZAR


def test_buscar_conflicto_devuelve_el_primero():
    primero, segundo = _turno(10, 0), _turno(10, 30)
    assert buscar_conflicto(datetime(2024, 5, 20, 10, 15), 30, [primero, segundo]) is primero
    assert buscar_conflicto(datetime(2024, 5, 20, 11, 0), 30, [primero, segundo]) is None


def test_franja_ocupada():
    existentes = [_turno(10, 0, duracion=45)]
    assert franja_ocupada(datetime(2024, 5, 20, 10, 0), existentes)
    assert franja_ocupada(datetime(2024, 5, 20, 10, 30), existentes)
    assert not franja_ocupada(datetime(2024, 5, 20, 10, 45), existentes)
    assert not franja_ocupada(datetime(2024, 5, 20, 9, 30), existentes)

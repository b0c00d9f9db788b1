"""Reloj inyectable: toda noción de "ahora" y "hoy" pasa por acá."""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from consultorio.config import settings


class Reloj:
    def ahora(self) -> datetime:
        raise NotImplementedError

    def hoy(self) -> date:
        return self.ahora().date()


class RelojSistema(Reloj):
    """Hora actual del consultorio, naive, en la zona horaria configurada."""

    def __init__(self, zona_horaria: str | None = None):
        self._zona = ZoneInfo(zona_horaria or settings.ZONA_HORARIA)

    def ahora(self) -> datetime:
        return datetime.now(self._zona).replace(tzinfo=None)


class RelojFijo(Reloj):
    """Reloj detenido en un instante dado. Pensado para tests y reprocesos."""

    def __init__(self, instante: datetime):
        self.instante = instante

    def ahora(self) -> datetime:
        return self.instante


_reloj_sistema = RelojSistema()


def get_reloj() -> Reloj:
    return _reloj_sistema


def a_hora_local(valor: datetime) -> datetime:
    # Si viene con offset (ej: 2026-01-22T10:00:00-03:00) lo pasamos a la hora del consultorio
    # y le quitamos tzinfo, para mantener la convención "naive local" usada en todo el código.
    if valor.tzinfo is not None:
        return valor.astimezone(ZoneInfo(settings.ZONA_HORARIA)).replace(tzinfo=None)
    return valor

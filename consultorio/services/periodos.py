"""
Generación de períodos (buckets) para los reportes.

Cada período es una ventana semiabierta [inicio, fin) con una etiqueta lista
para mostrar. Los períodos se alinean a su calendario natural: el primero
cubre `inicio` aunque caiga a mitad de período y el último puede extenderse
más allá de `fin` para completar el suyo.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator

from dateutil.relativedelta import relativedelta


class Granularidad(str, enum.Enum):
    DIA = "dia"
    SEMANA = "semana"
    MES = "mes"
    CUATRIMESTRE = "cuatrimestre"
    ANIO = "año"


MESES_ABREV = ("ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic")
CUATRIMESTRES_POR_ANIO = 3


@dataclass(frozen=True)
class Periodo:
    etiqueta: str
    inicio: datetime
    fin: datetime  # exclusivo

    def recortar(self, desde: datetime, hasta: datetime) -> tuple[datetime, datetime]:
        """Intersección del período con el rango [desde, hasta)."""
        return max(self.inicio, desde), min(self.fin, hasta)


def como_datetime(valor: date | datetime) -> datetime:
    if isinstance(valor, datetime):
        return valor
    return datetime.combine(valor, time.min)


def _inicio_del_dia(valor: datetime) -> datetime:
    return valor.replace(hour=0, minute=0, second=0, microsecond=0)


def generar_periodos(
    granularidad: Granularidad | str,
    inicio: date | datetime,
    fin: date | datetime,
) -> Iterator[Periodo]:
    """Genera los períodos de `granularidad` que cubren [inicio, fin].

    Si `inicio` es posterior a `fin` no se genera ninguno.
    """
    granularidad = Granularidad(granularidad)
    inicio = como_datetime(inicio)
    fin = como_datetime(fin)
    if inicio > fin:
        return

    if granularidad == Granularidad.DIA:
        actual = _inicio_del_dia(inicio)
        while actual <= fin:
            siguiente = actual + timedelta(days=1)
            yield Periodo(actual.strftime("%d/%m"), actual, siguiente)
            actual = siguiente

    elif granularidad == Granularidad.SEMANA:
        # las semanas arrancan el lunes
        actual = _inicio_del_dia(inicio) - timedelta(days=inicio.weekday())
        while actual <= fin:
            siguiente = actual + timedelta(days=7)
            yield Periodo(f"Sem {actual.isocalendar()[1]}", actual, siguiente)
            actual = siguiente

    elif granularidad == Granularidad.CUATRIMESTRE:
        anio = inicio.year
        numero = (inicio.month - 1) // 4 + 1
        while True:
            inicio_c = datetime(anio, (numero - 1) * 4 + 1, 1)
            if inicio_c > fin:
                break
            yield Periodo(f"Q{numero} {anio}", inicio_c, inicio_c + relativedelta(months=4))
            numero += 1
            if numero > CUATRIMESTRES_POR_ANIO:
                numero = 1
                anio += 1

    elif granularidad == Granularidad.ANIO:
        for anio in range(inicio.year, fin.year + 1):
            yield Periodo(str(anio), datetime(anio, 1, 1), datetime(anio + 1, 1, 1))

    else:  # mes
        actual = _inicio_del_dia(inicio).replace(day=1)
        while actual <= fin:
            siguiente = actual + relativedelta(months=1)
            yield Periodo(MESES_ABREV[actual.month - 1], actual, siguiente)
            actual = siguiente


def rango_por_defecto(granularidad: Granularidad | str, hoy: date) -> tuple[date, date]:
    """Rango que se reporta cuando no se indican fechas."""
    granularidad = Granularidad(granularidad)
    if granularidad == Granularidad.DIA:
        return hoy - timedelta(days=30), hoy
    if granularidad == Granularidad.SEMANA:
        return hoy - timedelta(weeks=12), hoy
    if granularidad == Granularidad.CUATRIMESTRE:
        return hoy - relativedelta(months=12), hoy
    if granularidad == Granularidad.ANIO:
        return hoy - relativedelta(years=3), hoy
    return hoy - relativedelta(months=6), hoy

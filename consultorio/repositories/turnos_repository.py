"""
Acceso a la base para el motor de turnos (el "libro" de turnos).

Los servicios no tocan la sesión directamente: todo pasa por este
repositorio, que además traduce los errores de SQLAlchemy a los errores del
dominio (unicidad violada vs. base caída).
"""
import functools
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Collection

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from consultorio.core.errores import InfraestructuraError, ViolacionUnicidadError
from consultorio.models import (
    CancelacionTurno,
    Especialidad,
    EstadoTurno,
    ObraSocial,
    Paciente,
    Profesional,
    Turno,
    Usuario,
)
from consultorio.models.estado_turno_model import ESTADOS_LIBERAN_AGENDA

logger = logging.getLogger(__name__)


def _es_violacion_unicidad(error: IntegrityError) -> bool:
    mensaje = str(error.orig).lower()
    return "unique" in mensaje or "duplicate" in mensaje


def _traducir_errores(metodo):
    @functools.wraps(metodo)
    def envoltura(self, *args, **kwargs):
        try:
            return metodo(self, *args, **kwargs)
        except IntegrityError as e:
            if _es_violacion_unicidad(e):
                raise ViolacionUnicidadError("Registro duplicado.") from e
            logger.error("Error de integridad en %s", metodo.__name__, exc_info=True)
            raise InfraestructuraError("Error de integridad en la base de datos.") from e
        except SQLAlchemyError as e:
            logger.error("Error de base de datos en %s", metodo.__name__, exc_info=True)
            raise InfraestructuraError("Error de acceso a la base de datos.") from e

    return envoltura


@dataclass
class FiltroTurnos:
    profesional_id: int | None = None
    paciente_id: int | None = None
    desde: datetime | None = None  # inclusivo
    hasta: datetime | None = None  # exclusivo
    estados: Collection[EstadoTurno] | None = None
    excluir_estados: Collection[EstadoTurno] | None = None
    especialidad: str | None = None
    excluir_turno_id: int | None = None


class TurnosRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtrar(self, stmt, filtro: FiltroTurnos):
        if filtro.profesional_id is not None:
            stmt = stmt.where(Turno.profesional_id == filtro.profesional_id)
        if filtro.paciente_id is not None:
            stmt = stmt.where(Turno.paciente_id == filtro.paciente_id)
        if filtro.desde is not None:
            stmt = stmt.where(Turno.fecha >= filtro.desde)
        if filtro.hasta is not None:
            stmt = stmt.where(Turno.fecha < filtro.hasta)
        if filtro.estados is not None:
            stmt = stmt.where(Turno.estado.in_(list(filtro.estados)))
        if filtro.excluir_estados:
            stmt = stmt.where(Turno.estado.not_in(list(filtro.excluir_estados)))
        if filtro.excluir_turno_id is not None:
            stmt = stmt.where(Turno.id != filtro.excluir_turno_id)
        if filtro.especialidad is not None:
            stmt = (
                stmt.join(Profesional, Turno.profesional_id == Profesional.id)
                .join(Especialidad, Profesional.especialidad_id == Especialidad.id)
                .where(Especialidad.nombre == filtro.especialidad)
            )
        return stmt

    # --- turnos -----------------------------------------------------------

    @_traducir_errores
    def buscar_turnos(
        self,
        filtro: FiltroTurnos,
        limite: int | None = None,
        descendente: bool = False,
        con_especialidad: bool = False,
    ) -> list[Turno]:
        stmt = self._filtrar(select(Turno), filtro)
        if con_especialidad:
            stmt = stmt.options(joinedload(Turno.profesional).joinedload(Profesional.especialidad))
        if descendente:
            stmt = stmt.order_by(Turno.fecha.desc(), Turno.id.desc())
        else:
            stmt = stmt.order_by(Turno.fecha.asc(), Turno.id.asc())
        if limite is not None:
            stmt = stmt.limit(limite)
        return list(self.db.execute(stmt).unique().scalars().all())

    @_traducir_errores
    def contar_turnos(self, filtro: FiltroTurnos) -> int:
        stmt = self._filtrar(select(func.count(Turno.id)), filtro)
        return self.db.execute(stmt).scalar_one()

    @_traducir_errores
    def contar_por_estado(self, filtro: FiltroTurnos) -> dict[EstadoTurno, int]:
        stmt = self._filtrar(select(Turno.estado, func.count(Turno.id)), filtro).group_by(Turno.estado)
        return {estado: cantidad for estado, cantidad in self.db.execute(stmt).all()}

    def turnos_activos_del_dia(
        self, profesional_id: int, dia: date, excluir_turno_id: int | None = None
    ) -> list[Turno]:
        """Turnos que ocupan la agenda del profesional ese día calendario."""
        inicio = datetime.combine(dia, time.min)
        return self.buscar_turnos(
            FiltroTurnos(
                profesional_id=profesional_id,
                desde=inicio,
                hasta=inicio + timedelta(days=1),
                excluir_estados=ESTADOS_LIBERAN_AGENDA,
                excluir_turno_id=excluir_turno_id,
            )
        )

    @_traducir_errores
    def obtener_turno(
        self, turno_id: int, profesional_id: int | None = None, bloquear: bool = False
    ) -> Turno | None:
        stmt = select(Turno).where(Turno.id == turno_id)
        if profesional_id is not None:
            # la pertenencia al profesional es parte de la búsqueda
            stmt = stmt.where(Turno.profesional_id == profesional_id)
        if bloquear:
            stmt = stmt.with_for_update()  # SELECT ... FOR UPDATE (bloquea la fila)
        return self.db.execute(stmt).scalar_one_or_none()

    @_traducir_errores
    def extremos_de_fecha(self, profesional_id: int) -> tuple[datetime | None, datetime | None]:
        stmt = select(func.min(Turno.fecha), func.max(Turno.fecha)).where(Turno.profesional_id == profesional_id)
        primero, ultimo = self.db.execute(stmt).one()
        return primero, ultimo

    @_traducir_errores
    def insertar_turno(self, turno: Turno) -> Turno:
        self.db.add(turno)
        self.db.flush()
        return turno

    @_traducir_errores
    def actualizar_estado(self, turno: Turno, estado: EstadoTurno, instante: datetime) -> Turno:
        turno.estado = estado
        turno.actualizado_en = instante
        self.db.flush()
        return turno

    @_traducir_errores
    def actualizar_turno(self, turno: Turno, **campos) -> Turno:
        for nombre, valor in campos.items():
            setattr(turno, nombre, valor)
        self.db.flush()
        return turno

    @_traducir_errores
    def insertar_cancelacion(self, cancelacion: CancelacionTurno) -> CancelacionTurno:
        self.db.add(cancelacion)
        self.db.flush()
        return cancelacion

    # --- pacientes --------------------------------------------------------

    @_traducir_errores
    def contar_pacientes_creados_antes(self, instante: datetime) -> int:
        return self.db.execute(select(func.count(Paciente.id)).where(Paciente.creado_en < instante)).scalar_one()

    @_traducir_errores
    def contar_pacientes_creados_entre(self, desde: datetime, hasta: datetime) -> int:
        stmt = select(func.count(Paciente.id)).where(Paciente.creado_en >= desde, Paciente.creado_en < hasta)
        return self.db.execute(stmt).scalar_one()

    @_traducir_errores
    def obtener_paciente(self, paciente_id: int) -> Paciente | None:
        return self.db.get(Paciente, paciente_id)

    @_traducir_errores
    def paciente_por_dni(self, dni: str) -> Paciente | None:
        return self.db.execute(select(Paciente).where(Paciente.dni == dni)).scalar_one_or_none()

    @_traducir_errores
    def insertar_paciente(self, paciente: Paciente) -> Paciente:
        self.db.add(paciente)
        self.db.flush()
        return paciente

    # --- catálogos --------------------------------------------------------

    @_traducir_errores
    def obtener_profesional(self, profesional_id: int) -> Profesional | None:
        return self.db.get(Profesional, profesional_id)

    @_traducir_errores
    def listar_profesionales(self) -> list[Profesional]:
        stmt = (
            select(Profesional)
            .options(joinedload(Profesional.especialidad))
            .where(Profesional.activo.is_(True))
            .order_by(Profesional.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    @_traducir_errores
    def obtener_obra_social(self, obra_social_id: int) -> ObraSocial | None:
        return self.db.get(ObraSocial, obra_social_id)

    @_traducir_errores
    def obtener_usuario(self, usuario_id: int) -> Usuario | None:
        return self.db.get(Usuario, usuario_id)

    # --- transacción ------------------------------------------------------

    @_traducir_errores
    def confirmar(self) -> None:
        self.db.commit()

    def revertir(self) -> None:
        self.db.rollback()

    def refrescar(self, instancia) -> None:
        self.db.refresh(instancia)

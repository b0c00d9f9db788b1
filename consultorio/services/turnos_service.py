#acá va la lógica de turnos y no en los endpoints que están en consultorio/api/turnos_router.py
import logging
import threading
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from consultorio.config import settings
from consultorio.core.errores import (
    CancelacionDuplicadaError,
    ConflictoError,
    NoEncontradoError,
    TurnoSolapadoError,
    ValidacionError,
    ViolacionUnicidadError,
)
from consultorio.core.reloj import Reloj, get_reloj
from consultorio.models import CancelacionTurno, EstadoTurno, Paciente, Turno
from consultorio.repositories.turnos_repository import FiltroTurnos, TurnosRepository
from consultorio.schemas.turno_schema import HorarioDisponible, ReprogramacionIn, TurnoCreate
from consultorio.services.estados_turno import (
    ACTUALIZACION_DIRECTA,
    CANCELACION,
    REPROGRAMACION,
    validar_destino_directo,
    validar_transicion,
)
from consultorio.services.solapamiento import Admision, franja_ocupada, verificar_solapamiento

logger = logging.getLogger(__name__)

MENSAJE_HORARIO_OCUPADO = "Ya existe un turno programado en ese horario para el profesional seleccionado."

# Un candado por profesional: el control de solapamiento y el INSERT se hacen
# juntos, sin que otra reserva del mismo profesional se meta en el medio.
# Entre procesos distintos lo respalda el índice único parcial de turnos.
_candados: dict[int, threading.Lock] = {}
_candados_guard = threading.Lock()


def _candado_profesional(profesional_id: int) -> threading.Lock:
    with _candados_guard:
        return _candados.setdefault(profesional_id, threading.Lock())


def _obtener_profesional_activo(repo: TurnosRepository, profesional_id: int):
    profesional = repo.obtener_profesional(profesional_id)
    if not profesional or not profesional.activo:
        raise NoEncontradoError("Profesional no encontrado.")
    return profesional


def _resolver_paciente(repo: TurnosRepository, datos: TurnoCreate, ahora: datetime) -> int:
    if datos.paciente_id is not None:
        if not repo.obtener_paciente(datos.paciente_id):
            raise NoEncontradoError("Paciente no encontrado.")
        return datos.paciente_id

    nuevo = datos.paciente_nuevo
    if repo.paciente_por_dni(nuevo.dni):
        raise ConflictoError(f"Ya existe un paciente registrado con DNI {nuevo.dni}")
    paciente = Paciente(
        **nuevo.model_dump(),
        creado_por_id=datos.creado_por_id,
        creado_en=ahora,
    )
    repo.insertar_paciente(paciente)
    logger.info("Paciente %s dado de alta al reservar turno", paciente.id)
    return paciente.id


def reservar_turno(db: Session, datos: TurnoCreate, reloj: Reloj | None = None) -> Turno:
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)

    profesional = _obtener_profesional_activo(repo, datos.profesional_id)
    if datos.obra_social_id is not None:
        obra_social = repo.obtener_obra_social(datos.obra_social_id)
        if not obra_social or not obra_social.activa:
            raise NoEncontradoError("Obra social no encontrada.")
    if datos.creado_por_id is not None and not repo.obtener_usuario(datos.creado_por_id):
        raise NoEncontradoError("Usuario no encontrado.")

    ahora = reloj.ahora()
    with _candado_profesional(profesional.id):
        try:
            existentes = repo.turnos_activos_del_dia(profesional.id, datos.fecha.date())
            if verificar_solapamiento(profesional.id, datos.fecha, datos.duracion, existentes) == Admision.RECHAZAR:
                logger.warning(
                    "Turno rechazado por solapamiento: profesional=%s fecha=%s duracion=%s",
                    profesional.id, datos.fecha, datos.duracion,
                )
                raise TurnoSolapadoError(MENSAJE_HORARIO_OCUPADO)

            turno = Turno(
                paciente_id=_resolver_paciente(repo, datos, ahora),
                profesional_id=profesional.id,
                fecha=datos.fecha,
                duracion=datos.duracion,
                estado=EstadoTurno.PROGRAMADO,
                tipo_consulta=datos.tipo_consulta,
                obra_social_id=datos.obra_social_id,
                numero_afiliado=datos.numero_afiliado,
                copago=datos.copago,
                autorizacion=datos.autorizacion,
                motivo=datos.motivo,
                observaciones=datos.observaciones,
                creado_por_id=datos.creado_por_id,
                creado_en=ahora,
                actualizado_en=ahora,
            )
            repo.insertar_turno(turno)
            repo.confirmar()
        except ViolacionUnicidadError as e:
            # otro proceso reservó el mismo horario entre el control y el INSERT
            repo.revertir()
            raise TurnoSolapadoError(MENSAJE_HORARIO_OCUPADO) from e
        except Exception:
            repo.revertir()
            raise

    repo.refrescar(turno)
    logger.info("Turno %s reservado: profesional=%s fecha=%s", turno.id, turno.profesional_id, turno.fecha)
    return turno


def cambiar_estado_turno(
    db: Session,
    profesional_id: int,
    turno_id: int,
    nuevo_estado: EstadoTurno,
    reloj: Reloj | None = None,
) -> Turno:
    """Actualización directa de estado, hecha por el profesional dueño del turno."""
    reloj = reloj or get_reloj()
    validar_destino_directo(nuevo_estado)
    repo = TurnosRepository(db)

    turno = repo.obtener_turno(turno_id, profesional_id=profesional_id, bloquear=True)
    if not turno:
        raise NoEncontradoError("Turno no encontrado.")

    estado_anterior = turno.estado
    estado = validar_transicion(turno.estado, ACTUALIZACION_DIRECTA, nuevo_estado)
    try:
        repo.actualizar_estado(turno, estado, reloj.ahora())
        repo.confirmar()
    except Exception:
        repo.revertir()
        raise

    repo.refrescar(turno)
    logger.info("Turno %s: %s -> %s", turno.id, estado_anterior.value, turno.estado.value)
    return turno


def cancelar_turno(
    db: Session,
    turno_id: int,
    motivo: str,
    cancelado_por_id: int,
    reloj: Reloj | None = None,
) -> CancelacionTurno:
    """Cancela el turno y deja el registro de cancelación, en una sola transacción."""
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)

    turno = repo.obtener_turno(turno_id, bloquear=True)
    if not turno:
        raise NoEncontradoError("Turno no encontrado.")

    validar_transicion(turno.estado, CANCELACION)

    if turno.paciente_id is None:
        raise ValidacionError("El turno no tiene paciente asociado.", codigo=4221)
    if not repo.obtener_usuario(cancelado_por_id):
        raise NoEncontradoError("Usuario no encontrado.", codigo=4042)

    ahora = reloj.ahora()
    try:
        repo.actualizar_estado(turno, EstadoTurno.CANCELADO, ahora)
        cancelacion = repo.insertar_cancelacion(
            CancelacionTurno(
                turno_id=turno.id,
                paciente_id=turno.paciente_id,
                cancelado_por_id=cancelado_por_id,
                motivo=motivo,
                cancelado_en=ahora,
            )
        )
        repo.confirmar()
    except ViolacionUnicidadError as e:
        # otra solicitud canceló el turno entre nuestra lectura y la escritura
        repo.revertir()
        logger.warning("Cancelación concurrente detectada para el turno %s", turno_id)
        raise CancelacionDuplicadaError("El turno ya fue cancelado previamente.", origen="concurrencia") from e
    except Exception:
        repo.revertir()
        raise

    repo.refrescar(cancelacion)
    logger.info("Turno %s cancelado por el usuario %s", turno_id, cancelado_por_id)
    return cancelacion


def reprogramar_turno(
    db: Session,
    turno_id: int,
    datos: ReprogramacionIn,
    reloj: Reloj | None = None,
) -> Turno:
    """Mueve el turno a otra fecha y/o profesional conservando duración y datos de cobertura."""
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)

    turno = repo.obtener_turno(turno_id, bloquear=True)
    if not turno:
        raise NoEncontradoError("Turno no encontrado.")
    validar_transicion(turno.estado, REPROGRAMACION)
    _obtener_profesional_activo(repo, datos.profesional_id)

    with _candado_profesional(datos.profesional_id):
        try:
            existentes = repo.turnos_activos_del_dia(
                datos.profesional_id, datos.fecha.date(), excluir_turno_id=turno.id
            )
            if verificar_solapamiento(datos.profesional_id, datos.fecha, turno.duracion, existentes) == Admision.RECHAZAR:
                raise TurnoSolapadoError("Ya existe un turno asignado para este profesional en ese horario.")

            repo.actualizar_turno(
                turno,
                fecha=datos.fecha,
                profesional_id=datos.profesional_id,
                motivo=datos.motivo if datos.motivo is not None else turno.motivo,
                observaciones=datos.observaciones if datos.observaciones is not None else turno.observaciones,
                actualizado_en=reloj.ahora(),
            )
            repo.confirmar()
        except ViolacionUnicidadError as e:
            repo.revertir()
            raise TurnoSolapadoError("Ya existe un turno asignado para este profesional en ese horario.") from e
        except Exception:
            repo.revertir()
            raise

    repo.refrescar(turno)
    logger.info("Turno %s reprogramado: profesional=%s fecha=%s", turno.id, turno.profesional_id, turno.fecha)
    return turno


def obtener_turno(db: Session, turno_id: int) -> Turno:
    turno = TurnosRepository(db).obtener_turno(turno_id)
    if not turno:
        raise NoEncontradoError("Turno no encontrado.")
    return turno


def listar_turnos(
    db: Session,
    profesional_id: int | None = None,
    fecha: date | None = None,
    estado: EstadoTurno | None = None,
    limite: int = 200,
) -> list[Turno]:
    filtro = FiltroTurnos(profesional_id=profesional_id)
    if fecha is not None:
        filtro.desde = datetime.combine(fecha, datetime.min.time())
        filtro.hasta = filtro.desde + timedelta(days=1)
    if estado is not None:
        filtro.estados = [estado]
    return TurnosRepository(db).buscar_turnos(filtro, limite=limite)


def obtener_disponibilidad(
    db: Session,
    profesional_id: int,
    fecha: date,
    reloj: Reloj | None = None,
) -> list[HorarioDisponible]:
    """Grilla de horarios del día: libre si no cae dentro de un turno activo y todavía no pasó."""
    reloj = reloj or get_reloj()
    repo = TurnosRepository(db)
    _obtener_profesional_activo(repo, profesional_id)

    existentes = repo.turnos_activos_del_dia(profesional_id, fecha)
    ahora = reloj.ahora()

    horarios = []
    instante = datetime.combine(fecha, datetime.min.time()).replace(hour=settings.AGENDA_HORA_INICIO)
    cierre = instante.replace(hour=settings.AGENDA_HORA_FIN)
    while instante < cierre:
        horarios.append(
            HorarioDisponible(
                fecha=instante,
                hora=instante.strftime("%H:%M"),
                disponible=not franja_ocupada(instante, existentes) and instante > ahora,
                profesional_id=profesional_id,
            )
        )
        instante += timedelta(minutes=settings.AGENDA_INTERVALO_MIN)
    return horarios

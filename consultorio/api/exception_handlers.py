"""Traducción de los errores del motor de turnos a respuestas HTTP."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from consultorio.core.errores import CancelacionDuplicadaError, InfraestructuraError, TurnosError
from consultorio.logging_config import get_request_id

logger = logging.getLogger(__name__)


async def turnos_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, TurnosError):
        return await global_exception_handler(request, exc)

    if isinstance(exc, InfraestructuraError):
        logger.error(f"Error de infraestructura en {request.method} {request.url.path}: {exc.detail}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "Error interno del servidor", "codigo": exc.codigo, "request_id": get_request_id()},
        )

    content = {"detail": exc.detail, "codigo": exc.codigo}
    if isinstance(exc, CancelacionDuplicadaError):
        content["origen"] = exc.origen
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} ({type(exc).__name__}): {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Excepción no controlada en {request.method} {request.url.path}: {exc!s}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Error interno del servidor", "codigo": 5000, "request_id": get_request_id()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TurnosError, turnos_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

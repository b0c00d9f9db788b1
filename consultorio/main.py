import logging
import uuid

from fastapi import FastAPI, Request

from consultorio.api.estados_turno_router import estados_turno_router
from consultorio.api.exception_handlers import register_exception_handlers
from consultorio.api.profesionales_router import profesionales_router
from consultorio.api.reportes_router import reportes_router
from consultorio.api.turnos_router import turnos_router
from consultorio.config import settings
from consultorio.database import crear_tablas
from consultorio.logging_config import configurar_logging, reset_request_id, set_request_id

configurar_logging(settings.LOG_LEVEL, json_mode=settings.LOG_JSON)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
app.include_router(turnos_router, prefix="/api")
app.include_router(profesionales_router, prefix="/api")
app.include_router(reportes_router, prefix="/api")
app.include_router(estados_turno_router, prefix="/api")
register_exception_handlers(app)


@app.middleware("http")
async def asignar_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def inicializar_base():
    crear_tablas()
    logger.info("%s iniciado", settings.PROJECT_NAME)

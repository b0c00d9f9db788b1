from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuración del sistema de turnos.
    Se carga desde variables de entorno o desde el archivo .env del proyecto.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "Sistema de Gestión de Turnos"

    # Base de datos
    DATABASE_URL: str = Field("sqlite:///./consultorio.db", description="URL de conexión de SQLAlchemy")
    DB_ECHO: bool = Field(False, description="Loguear las consultas SQL (solo para debug)")

    # Todas las fechas se guardan "naive" en la hora local del consultorio
    ZONA_HORARIA: str = Field("America/Argentina/Buenos_Aires", description="Zona horaria del consultorio")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Nivel de logging")
    LOG_JSON: bool = Field(False, description="Emitir los logs en formato JSON")

    # Turnos
    DURACION_TURNO_DEFECTO: int = Field(30, description="Duración en minutos de un turno sin duración cargada")
    DURACION_TURNO_MIN: int = 15
    DURACION_TURNO_MAX: int = 120

    # Grilla de disponibilidad
    AGENDA_HORA_INICIO: int = Field(8, description="Primer horario ofrecido (hora)")
    AGENDA_HORA_FIN: int = Field(18, description="Hora de cierre de la agenda (no se ofrece)")
    AGENDA_INTERVALO_MIN: int = Field(30, description="Separación entre horarios ofrecidos, en minutos")

    # Reportes
    VALOR_CONSULTA_ESTIMADO: float = Field(45, description="Valor estimado por consulta para proyecciones")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from consultorio.config import settings

logger = logging.getLogger(__name__)

_es_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    # SQLite no permite compartir la conexión entre hilos por defecto (FastAPI usa un threadpool)
    connect_args={"check_same_thread": False} if _es_sqlite else {},
)


def activar_foreign_keys_sqlite(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if _es_sqlite:
    event.listen(engine, "connect", activar_foreign_keys_sqlite)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def crear_tablas(bind=None) -> None:
    # importa los modelos para que queden registrados en Base.metadata
    import consultorio.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Tablas verificadas en %s", (bind or engine).url.render_as_string(hide_password=True))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from kiosk_pricing.core.config import settings
import logging

logger = logging.getLogger(__name__)

engine_options = {
    "pool_pre_ping": True,
    "echo": settings.DEBUG,
}
# SQLite (pruebas locales) no acepta parámetros de pool
if not settings.database_url.startswith("sqlite"):
    engine_options.update(pool_size=10, max_overflow=20)

# El motor de precios es síncrono respecto a su llamador
sync_engine = create_engine(settings.database_url, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sync_engine)

Base = declarative_base()


def get_db():
    """Genera una sesión de base de datos para endpoints y tareas."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()

import enum
import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from shortly.config import settings
from shortly.json_utils import dumps, loads

logger = logging.getLogger(__name__)

TESTING = os.environ.get("TESTING", "False") == "True"

if TESTING:
    DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite:///./test.db")
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        json_serializer=dumps,
        json_deserializer=loads,
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=20,
        max_overflow=20,
        pool_timeout=60,
        pool_recycle=3600,
        pool_pre_ping=True,
        json_serializer=dumps,
        json_deserializer=loads,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class StoreStatus(str, enum.Enum):
    CONNECTED = "connected"
    UNAVAILABLE = "unavailable"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_store(db: Session) -> StoreStatus:
    """Проверяет доступность хранилища ссылок"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Хранилище недоступно, включен демо-режим: %s", e)
        db.rollback()
        return StoreStatus.UNAVAILABLE
    return StoreStatus.CONNECTED

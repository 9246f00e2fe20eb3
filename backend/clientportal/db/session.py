import os
from typing import Any, Generator

from sqlmodel import Session, SQLModel, create_engine

from clientportal.core.config import settings
from clientportal.core.logging_setup import logger
import clientportal.db.base  # noqa: F401

connect_args: dict[str, Any] = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False
elif settings.database_url.startswith("postgresql"):
    client_encoding = os.getenv("POSTGRES_CLIENT_ENCODING", "UTF8")
    connect_args["options"] = f"-c client_encoding={client_encoding}"

engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    connect_args=connect_args,
)


def init_db() -> None:
    SQLModel.metadata.create_all(bind=engine)
    logger.info("Tabelas do portal verificadas")


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

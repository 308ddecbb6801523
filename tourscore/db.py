from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL

connect_args = {}
engine_kwargs = {"pool_pre_ping": True}

# Solo para SQLite local
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
    # SQLite en memoria: una sola conexión compartida
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs = {"poolclass": StaticPool}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    **engine_kwargs,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

engine_kwargs: dict = {"pool_pre_ping": True}
connect_args: dict = {}

url = make_url(settings.DATABASE_URL)
if url.get_backend_name() in {"postgresql", "postgres"}:
    # o CSV chega em latin-1; no banco tudo é UTF-8
    connect_args.setdefault("options", "-c client_encoding=UTF8")

if url.get_backend_name() == "sqlite":
    connect_args = {**connect_args, "check_same_thread": False}
    if ":memory:" in settings.DATABASE_URL:
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

from .models import Base, User
from .session import create_db_engine, init_schema, make_session_factory

__all__ = ["Base", "User", "create_db_engine", "init_schema", "make_session_factory"]

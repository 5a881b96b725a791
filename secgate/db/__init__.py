from secgate.db.database import Base, init_db, close_db, engine, async_session_maker

__all__ = ["Base", "init_db", "close_db", "engine", "async_session_maker"]

# Overview: Flask extension instances and engine tuning for the record store.

from sqlalchemy import event
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def configure_sqlite_engine(engine, busy_timeout_seconds: float = 15.0) -> None:
    """
    Make pysqlite honour transactions the way the services expect.

    Every transaction starts with BEGIN IMMEDIATE so writers are serialized
    (the counter increment must never interleave) and SAVEPOINTs work.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout_seconds * 1000)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

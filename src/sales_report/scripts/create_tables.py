#!/usr/bin/env python3
from contextlib import closing
import logging

from dotenv import load_dotenv

from ..config import ReportConfig, configure_logging
from ..etl.extract_funcs import get_sql_conn
from ..secrets import SecretResolver

logger = logging.getLogger(__name__)

DDL_PRODUCTOS = """
CREATE TABLE IF NOT EXISTS "Productos" (
    "Id"         SERIAL PRIMARY KEY,
    "Nombre"     TEXT,
    "Cantidad"   INTEGER,
    "Precio"     NUMERIC(18, 2),
    "FechaVenta" DATE
);
"""

DDL_FECHA_INDEX = """
CREATE INDEX IF NOT EXISTS "IX_Productos_FechaVenta" ON "Productos" ("FechaVenta");
"""


def main():
    load_dotenv()
    configure_logging()

    config = ReportConfig.from_env()
    secrets = SecretResolver.from_config(config).resolve_pipeline_secrets()

    with closing(get_sql_conn(secrets.sql_connection_string)) as conn:
        with conn, conn.cursor() as cur:
            logger.info("Ensuring source table exists (idempotent).")
            cur.execute(DDL_PRODUCTOS)
            cur.execute(DDL_FECHA_INDEX)
    logger.info("Schema is ready.")


if __name__ == "__main__":
    main()

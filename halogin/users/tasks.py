import logging

from celery import shared_task
from django.db import connection

from halogin.users.sessions import prune_expired_sessions

logger = logging.getLogger(__name__)

# Tables carrying embedding vectors; their HNSW indexes bloat under updates.
EMBEDDING_TABLES = ("creators_creatorprofile", "companies_company")


def _compact_embedding_tables() -> None:
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        for table in EMBEDDING_TABLES:
            cursor.execute(f"REINDEX TABLE {table}")  # noqa: S608
            cursor.execute(f"VACUUM ANALYZE {table}")  # noqa: S608


@shared_task(name="users.daily_maintenance")
def daily_maintenance() -> dict:
    """Drop expired sessions and compact the embedding tables.

    Returns:
        Summary with the number of deleted rows.
    """
    deleted = prune_expired_sessions()
    logger.info("Maintenance removed %s expired session rows", deleted)
    _compact_embedding_tables()
    return {"deleted_sessions": deleted}

from __future__ import annotations

from django.db import connection
from pgvector.django import MaxInnerProduct
from rest_framework import status
from rest_framework.exceptions import APIException

from halogin.integrations.embeddings.client import encode_or_fail

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


class VectorSearchUnavailable(APIException):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    default_detail = "Similarity search requires a PostgreSQL database."
    default_code = "vector_search_unavailable"


def vector_search_available() -> bool:
    return connection.vendor == "postgresql"


def rank_by_similarity(queryset, query: str, limit: int = DEFAULT_LIMIT):
    """Order ``queryset`` by inner product between ``embedding`` and the query.

    Rows get a ``score`` attribute (higher is closer). Rows without an
    embedding are skipped.
    """
    if not vector_search_available():
        raise VectorSearchUnavailable
    vector = encode_or_fail(query)
    # <#> yields the negated inner product, so ascending order ranks best first.
    ranked = (
        queryset.filter(embedding__isnull=False)
        .annotate(distance=MaxInnerProduct("embedding", vector))
        .order_by("distance")[: max(1, min(limit, MAX_LIMIT))]
    )
    results = list(ranked)
    for row in results:
        row.score = -float(row.distance)
    return results

"""
Per-order locks using PostgreSQL advisory locks.
"""
from contextlib import contextmanager
from uuid import UUID

from django.db import connection


@contextmanager
def order_lock(order_id: UUID):
    """
    Acquire a transaction-scoped advisory lock on an order.

    Must be used inside ``transaction.atomic()``; the lock is released when
    the transaction ends. Databases without advisory locks skip it and rely
    on the conditional status update alone.

    Usage:
        with transaction.atomic(), order_lock(order_id):
            # Read, validate and write the order
            pass
    """
    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s)::bigint)",
                [str(order_id)]
            )
    yield

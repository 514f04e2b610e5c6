"""Focus-time reconciliation rule shared by every writer.

The stored counter only ever moves up: the larger of two observations wins,
and a writer only writes when it holds something larger than what it last saw.
"""


def reconcile(local_seconds: int, stored_seconds: int) -> int:
    return max(local_seconds, stored_seconds)


def should_flush(local_seconds: int, known_stored_seconds: int) -> bool:
    return local_seconds > known_stored_seconds

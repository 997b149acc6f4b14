"""
yearend_batch -- batch runner and public API of the year-end engine.

Provides a batch execution engine with parallel per-employee computation,
SAVEPOINT-per-employee persistence and a persisted job / item audit trail.

Architecture:
    yearend_batch/ is the top-level package.  Nothing in kernel/, engines/,
    config/ or services/ imports from yearend_batch.

Invariants:
    - SAVEPOINT isolation per employee
    - Job idempotency (UNIQUE idempotency_key)
    - Clock injection (no datetime.now() calls)
    - No retries; one employee's failure never aborts its siblings
"""

"""Shared number generation utility.

Format tokens:
  {date}       → YYYYMMDD (today)
  {seq:N}      → zero-padded sequence number, N digits

Formats:
  batch:      BATCH-{date}-{seq:4}
  gate_pass:  GP-{date}-{seq:4}
  sale:       INV-{date}-{seq:5}

The sequence is the running count of all rows of that entity plus one, so
it does not reset daily.  Two concurrent writers can read the same count;
``insert_with_code`` inserts under a SAVEPOINT and retries with a fresh
count when the unique index rejects the code.
"""

import logging
import re
from datetime import date
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.exceptions import ConcurrencyConflictError
from app.models.batch import Batch
from app.models.gate_pass import GatePass
from app.models.sale import Sale

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = {
    "batch": "BATCH-{date}-{seq:4}",
    "gate_pass": "GP-{date}-{seq:4}",
    "sale": "INV-{date}-{seq:5}",
}

# entity → (model, primary key column) for counting
ENTITY_COUNT_MAP = {
    "batch": (Batch, Batch.id),
    "gate_pass": (GatePass, GatePass.id),
    "sale": (Sale, Sale.id),
}


async def _count_existing(db: AsyncSession, entity: str) -> int:
    _, pk = ENTITY_COUNT_MAP[entity]
    result = await db.execute(select(func.count(pk)))
    return result.scalar() or 0


def format_code(entity: str, seq_num: int, on: date | None = None) -> str:
    """Render a code, e.g. ``format_code("gate_pass", 7)`` → ``GP-20250101-0007``."""
    fmt = DEFAULT_FORMATS[entity]
    today_str = (on or date.today()).strftime("%Y%m%d")

    seq_match = re.search(r"\{seq:(\d+)\}", fmt)
    seq_width = int(seq_match.group(1)) if seq_match else 4

    code = fmt.replace("{date}", today_str)
    return re.sub(r"\{seq:\d+\}", f"{seq_num:0{seq_width}d}", code)


async def generate_code(db: AsyncSession, entity: str, attempt: int = 0) -> str:
    """Generate the next sequential code for ``entity``.

    ``attempt`` skips ahead past codes a concurrent writer already took.
    """
    count = await _count_existing(db, entity)
    return format_code(entity, count + 1 + attempt)


def _is_unique_violation(exc: IntegrityError) -> bool:
    msg = str(exc.orig if exc.orig is not None else exc).lower()
    return "unique" in msg or "duplicate" in msg


async def insert_with_code(db: AsyncSession, entity: str, build: Callable[[str], object]):
    """Insert the row returned by ``build(code)`` with a fresh unique code.

    Pending changes are flushed first so a rolled-back SAVEPOINT only
    discards the new row.
    """
    await db.flush()

    attempts = max(settings.code_retry_attempts, 1)
    for attempt in range(attempts):
        code = await generate_code(db, entity, attempt)
        row = build(code)
        try:
            async with db.begin_nested():
                db.add(row)
                await db.flush()
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            logger.warning(
                "Code collision on %s (attempt %d/%d), retrying",
                code, attempt + 1, attempts,
            )
            continue
        return row

    raise ConcurrencyConflictError(
        f"Could not allocate a unique {entity.replace('_', ' ')} number. Please retry."
    )

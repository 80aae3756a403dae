"""Order number generation

Order numbers look like ``ORD-20250801-007``: the creation date followed by
that day's sequence, starting at 001 each day. The sequence comes from the
``order_sequences`` counter row, incremented inside the order's own
transaction so two concurrent checkouts never read the same value.
"""

from datetime import date

from sqlalchemy import insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import OrderSequence

ORDER_NUMBER_PREFIX = "ORD"


def format_order_number(current_date: date, orders_created_today: int) -> str:
    """Format the display number for the next order of the day"""
    sequence = orders_created_today + 1
    return f"{ORDER_NUMBER_PREFIX}-{current_date:%Y%m%d}-{sequence:03d}"


async def allocate_sequence(session: AsyncSession, day: date) -> int:
    """
    Reserve the next sequence value for `day` and return it.

    Must run inside the transaction that inserts the order. The increment is
    issued before any read so the counter row is locked for the rest of the
    transaction. When the day has no row yet it is created; a concurrent
    creator racing on the same insert fails on the primary key and is retried
    by the caller.
    """
    result = await session.execute(
        update(OrderSequence)
        .where(OrderSequence.day == day)
        .values(last_value=OrderSequence.last_value + 1)
        .returning(OrderSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one_or_none()
    if value is not None:
        return value

    await session.execute(insert(OrderSequence).values(day=day, last_value=1))
    return 1


async def next_order_number(session: AsyncSession, day: date) -> str:
    value = await allocate_sequence(session, day)
    return format_order_number(day, value - 1)

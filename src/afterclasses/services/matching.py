"""Match suggestions and the coin-priced approach action."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from afterclasses.core.settings import settings
from afterclasses.models import Approach, User
from afterclasses.services.errors import InsufficientBalanceError, UserNotFoundError

logger = logging.getLogger(__name__)


def suggestions(
    db: Session,
    user_id: int | None,
    gender: str | None = None,
    limit: int | None = None,
) -> Sequence[User]:
    """Return the newest profiles other than ``user_id``.

    When ``gender`` is given, profiles with that gender are left out.
    """
    query = db.query(User)
    if user_id is not None:
        query = query.filter(User.id != user_id)
    if gender:
        query = query.filter(User.gender != gender)
    return (
        query.order_by(User.created_at.desc(), User.id.desc())
        .limit(settings.suggestion_limit if limit is None else limit)
        .all()
    )


def approach(
    db: Session,
    from_user_id: int,
    to_user_id: int,
    request_line: str | None,
    cost: int | None = None,
) -> Approach:
    """Debit the sender and record the approach in a single transaction.

    The debit only applies while the balance covers the cost, so the balance
    never goes negative and a rejected approach leaves no trace.
    """
    cost = settings.approach_cost if cost is None else cost
    try:
        debit = db.execute(
            update(User)
            .where(User.id == from_user_id, User.coins >= cost)
            .values(coins=User.coins - cost)
            .execution_options(synchronize_session=False)
        )
        if debit.rowcount != 1:
            db.rollback()
            if db.query(User.id).filter(User.id == from_user_id).first() is None:
                raise UserNotFoundError()
            raise InsufficientBalanceError()

        record = Approach(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            request_line=request_line,
        )
        db.add(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(record)
    logger.info("User %s approached user %s for %s coins", from_user_id, to_user_id, cost)
    return record

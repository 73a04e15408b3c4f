"""Push subscription persistence helpers."""

from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional

from sqlalchemy import select

from mealmerge.models.records import PushSubscription

from .models import PushSubscriptionORM
from .repository import session_scope


def _to_model(row: PushSubscriptionORM) -> PushSubscription:
    return PushSubscription.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "endpoint": row.endpoint,
            "created_at": row.created_at,
        }
    )


def save_push_subscription(
    *,
    user_id: str,
    endpoint: str,
    subscription: Optional[Mapping[str, Any]] = None,
) -> PushSubscription:
    with session_scope() as session:
        row = PushSubscriptionORM(
            user_id=user_id,
            endpoint=endpoint.strip(),
            subscription=json.dumps(dict(subscription)) if subscription is not None else None,
        )
        session.add(row)
        session.flush()
        session.refresh(row)
        return _to_model(row)


def list_push_subscriptions() -> List[PushSubscription]:
    """Return every subscription, newest first."""

    with session_scope() as session:
        rows = (
            session.execute(
                select(PushSubscriptionORM).order_by(
                    PushSubscriptionORM.created_at.desc(),
                    PushSubscriptionORM.id.desc(),
                )
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


__all__ = ["save_push_subscription", "list_push_subscriptions"]

"""Management CLI.

Usage:
    python -m app.cli create-user EMAIL "FULL NAME" ROLE   # prints id + access token
    python -m app.cli issue-token USER_ID                  # fresh access token
    python -m app.cli list-users
    python -m app.cli recalculate-costs [BATCH_ID ...]     # roll-up all (or some) batches

ROLE is one of: super_admin, manager, vendor, store_keeper.
"""

import asyncio
import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from app.auth.jwt import create_access_token
from app.auth.permissions import resolve_permissions
from app.config import settings
from app.database import async_session
from app.models.batch import Batch
from app.models.user import User, UserRole
from app.services.costing import recalculate_costs
from app.utils.cache import close_redis, invalidate_cache


def _sync_session() -> Session:
    return Session(create_engine(settings.database_url_sync))


def _token_for(user: User) -> str:
    return create_access_token(
        user_id=user.id,
        role=user.role.value,
        permissions=resolve_permissions(user.role.value),
    )


def create_user(email: str, full_name: str, role: str):
    try:
        user_role = UserRole(role)
    except ValueError:
        print(f"Unknown role {role!r}; expected one of: {', '.join(r.value for r in UserRole)}")
        sys.exit(2)

    with _sync_session() as session:
        user = User(email=email, full_name=full_name, role=user_role, is_active=True)
        session.add(user)
        session.commit()
        print(f"  Created {user.role.value} {user.email}: {user.id}")
        print(f"  Token: {_token_for(user)}")


def issue_token(user_id: str):
    with _sync_session() as session:
        user = session.get(User, user_id)
        if not user:
            print(f"User not found: {user_id}")
            sys.exit(1)
        print(_token_for(user))


def list_users():
    with _sync_session() as session:
        users = session.execute(select(User).order_by(User.created_at)).scalars().all()
        for u in users:
            print(f"  {u.id}  {u.role.value:<13} {u.email}")
        print(f"\n{len(users)} user(s)")


async def _recalculate(batch_ids: list[str]) -> int:
    async with async_session() as session:
        if not batch_ids:
            batch_ids = list((await session.execute(select(Batch.id))).scalars().all())
        for batch_id in batch_ids:
            cost = await recalculate_costs(session, batch_id)
            print(f"  {batch_id}: total={cost.total_cost} per_box={cost.final_cost_per_box}")
        await session.commit()
    await invalidate_cache("costs:*")
    await close_redis()
    return len(batch_ids)


def recalculate(batch_ids: list[str]):
    count = asyncio.run(_recalculate(batch_ids))
    print(f"\nRecalculated {count} batch(es)")


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else ""
    if cmd == "create-user" and len(args) == 4:
        create_user(args[1], args[2], args[3])
    elif cmd == "issue-token" and len(args) == 2:
        issue_token(args[1])
    elif cmd == "list-users":
        list_users()
    elif cmd == "recalculate-costs":
        recalculate(args[1:])
    else:
        print(__doc__)


if __name__ == "__main__":
    main()

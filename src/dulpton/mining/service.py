"""Mining lifecycle: start, stop, and lazy reward collection."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from dulpton.db.models import MiningOperation, User
from dulpton.ledger.accrual import compute_mining_reward
from dulpton.ledger.context import Ledger, record_activity
from dulpton.ledger.errors import NoRewardAvailable, NotFound

logger = structlog.get_logger()


@dataclass
class MiningCollection:
    reward: int
    total_points: int
    operation: MiningOperation


async def _require_user(ledger: Ledger, user_id: int) -> User:
    user = await ledger.store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_mining_operation(ledger: Ledger, user_id: int) -> MiningOperation:
    """Return the user's operation, creating an active one on first access."""
    operation = await ledger.store.get_mining_operation(user_id)
    if operation is not None:
        return operation
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        operation = await ledger.store.get_mining_operation(user_id)
        if operation is None:
            operation = await ledger.store.create_mining_operation(
                MiningOperation(
                    user_id=user_id,
                    is_active=True,
                    started_at=ledger.clock.now(),
                    last_reward_at=None,
                    session_earnings=0,
                )
            )
            logger.info("mining_operation_created", user_id=user_id, operation_id=operation.id)
    return operation


async def start_mining(ledger: Ledger, user_id: int) -> MiningOperation:
    """(Re)start mining and reset the session earnings.

    ``last_reward_at`` is kept, so after an earlier collection the next one
    counts from that collection and includes any time spent stopped.
    """
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        now = ledger.clock.now()
        operation = await ledger.store.get_mining_operation(user_id)
        if operation is None:
            operation = await ledger.store.create_mining_operation(
                MiningOperation(
                    user_id=user_id,
                    is_active=True,
                    started_at=now,
                    last_reward_at=None,
                    session_earnings=0,
                )
            )
        else:
            operation = await ledger.store.update_mining_operation(
                operation.id,
                {"is_active": True, "started_at": now, "session_earnings": 0},
            )
    logger.info("mining_started", user_id=user_id, operation_id=operation.id)  # type: ignore[union-attr]
    return operation  # type: ignore[return-value]


async def stop_mining(ledger: Ledger, user_id: int) -> MiningOperation:
    """Flip the operation to inactive. Earnings and reward timestamps are left as-is."""
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        operation = await ledger.store.get_mining_operation(user_id)
        if operation is None:
            raise NotFound("No active mining operation found")
        operation = await ledger.store.update_mining_operation(operation.id, {"is_active": False})
    logger.info("mining_stopped", user_id=user_id, operation_id=operation.id)  # type: ignore[union-attr]
    return operation  # type: ignore[return-value]


async def collect_mining(ledger: Ledger, user_id: int) -> MiningCollection:
    """Credit points mined since the last collection.

    Raises:
        NotFound: user or operation missing.
        OperationNotActive: mining is stopped.
        NoRewardAvailable: no time has elapsed since the last collection.
    """
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        user = await _require_user(ledger, user_id)
        operation = await ledger.store.get_mining_operation(user_id)
        if operation is None:
            raise NotFound("User or mining operation not found")

        now = ledger.clock.now()
        reward = compute_mining_reward(user, operation, now)
        if reward <= 0:
            raise NoRewardAvailable

        updated_user = await ledger.store.update_user(
            user_id, {"points": user.points + reward, "last_mining_reward": now}
        )
        updated_operation = await ledger.store.update_mining_operation(
            operation.id,
            {"last_reward_at": now, "session_earnings": operation.session_earnings + reward},
        )
        await record_activity(ledger, user_id, "mining", reward, "Mining Reward")

    return MiningCollection(
        reward=reward,
        total_points=updated_user.points,  # type: ignore[union-attr]
        operation=updated_operation,  # type: ignore[arg-type]
    )

"""Mining API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth.dependencies import get_current_user
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.mining import schemas, service

router = APIRouter(prefix="/api/v1/mining", tags=["Mining"])


# ---------------------------------------------------------------------------
# GET /mining: current operation (created on first access)
# ---------------------------------------------------------------------------
@router.get("", response_model=schemas.MiningOperationResponse)
async def get_operation(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.MiningOperationResponse:
    operation = await service.get_mining_operation(ledger, user.id)
    return schemas.MiningOperationResponse.model_validate(operation)


# ---------------------------------------------------------------------------
# POST /mining/start
# ---------------------------------------------------------------------------
@router.post("/start", response_model=schemas.MiningOperationResponse)
async def start(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.MiningOperationResponse:
    """Start (or restart) mining. Resets session earnings."""
    operation = await service.start_mining(ledger, user.id)
    return schemas.MiningOperationResponse.model_validate(operation)


# ---------------------------------------------------------------------------
# POST /mining/stop
# ---------------------------------------------------------------------------
@router.post("/stop", response_model=schemas.MiningOperationResponse)
async def stop(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.MiningOperationResponse:
    operation = await service.stop_mining(ledger, user.id)
    return schemas.MiningOperationResponse.model_validate(operation)


# ---------------------------------------------------------------------------
# POST /mining/collect
# ---------------------------------------------------------------------------
@router.post("/collect", response_model=schemas.MiningCollectResponse)
async def collect(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.MiningCollectResponse:
    """Collect points mined since the last collection."""
    result = await service.collect_mining(ledger, user.id)
    return schemas.MiningCollectResponse(
        reward=result.reward,
        total_points=result.total_points,
        mining_operation=schemas.MiningOperationResponse.model_validate(result.operation),
    )

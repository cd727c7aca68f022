"""
Split allocation routes.
"""
import logging
from fastapi import APIRouter, HTTPException, status

from fairshare.core.utils import format_error
from fairshare.schemas.split import (
    AllocationLine,
    AllocationResult,
    SplitPreviewResponse,
    SplitRequest,
    TransactionSharesResponse,
)
from fairshare.services.money import format_minor, to_minor
from fairshare.services.split_service import (
    allocate,
    build_transaction_shares,
    describe_allocation,
    payer_included,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/splits", tags=["splits"])


def run_split(split_data: SplitRequest) -> AllocationResult:
    """Allocate the request, raising 422 with the failure reason if invalid."""
    currency = split_data.currency
    total_minor = to_minor(split_data.total, currency.decimals)
    result = allocate(split_data.selection, total_minor, currency.decimals)
    if not result.ok:
        failure = result.failure
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=format_error(failure.message, failure.model_dump(mode="json"))
        )
    logger.debug(describe_allocation(result, currency))
    return result


@router.post("/preview", response_model=SplitPreviewResponse)
async def preview_split(split_data: SplitRequest):
    """Compute per-person amounts for a split selection."""
    result = run_split(split_data)
    decimals = split_data.currency.decimals

    return SplitPreviewResponse(
        mode=split_data.selection.mode,
        currency=split_data.currency.code,
        decimals=decimals,
        total_minor=sum(a.amount_minor for a in result.allocations),
        allocations=[
            AllocationLine(
                user_id=a.user_id,
                amount_minor=a.amount_minor,
                amount=format_minor(a.amount_minor, decimals)
            )
            for a in result.allocations
        ]
    )


@router.post("/shares", response_model=TransactionSharesResponse)
async def build_shares(split_data: SplitRequest):
    """Build the split part of an expense create/update request body."""
    if not payer_included(split_data.selection, split_data.payer_id):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=format_error(
                "Payer must be one of the participants",
                {"reason": "payer_not_included", "payer_id": split_data.payer_id}
            )
        )

    result = run_split(split_data)
    currency = split_data.currency
    total_minor = to_minor(split_data.total, currency.decimals)

    return TransactionSharesResponse(
        split_type=split_data.selection.mode,
        amount=format_minor(total_minor, currency.decimals),
        currency=currency.code,
        shares=build_transaction_shares(split_data.selection, result.allocations, currency.decimals)
    )

"""
Group balance routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from fairshare.core.exceptions import BalanceUnavailableError
from fairshare.core.utils import format_error
from fairshare.schemas.settlement import BalanceView
from fairshare.services.balance_service import load_balance_view
from fairshare.services.settlement_client import SettlementClient, get_settlement_client

router = APIRouter(prefix="/groups", tags=["balances"])


@router.get("/{group_id}/balance", response_model=BalanceView)
async def get_group_balance(
    group_id: int,
    user_id: int,
    client: SettlementClient = Depends(get_settlement_client)
):
    """Get a user's net balance per currency and their debts in a group."""
    try:
        return await load_balance_view(client, group_id, user_id)
    except BalanceUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=format_error(str(e), {"group_id": group_id})
        )

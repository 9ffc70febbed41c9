from fastapi import APIRouter, Depends

from prizepool.config import config
from prizepool.logic.payments.payouts import approve_payout, reject_payout, request_payout
from prizepool.models.db.payout import PayoutRejectBody, PayoutRequestBody, PayoutStatus
from prizepool.models.db.user import UserPublic
from prizepool.routes.auth import admin_authenticated, user_authenticated
from prizepool.routes.models import PayoutResponse, PayoutsResponse
from prizepool.sql.payouts import sql_get_payouts, sql_get_payouts_for_user
from prizepool.utils.id_types import PayoutId

router = APIRouter(prefix=config.api_prefix)


@router.post("/payouts/request", response_model=PayoutResponse)
async def post_request_payout(
    body: PayoutRequestBody, user: UserPublic = Depends(user_authenticated)
) -> PayoutResponse:
    return PayoutResponse(data=await request_payout(user.id, body.tournament_id))


@router.get("/payouts/history", response_model=PayoutsResponse)
async def get_payout_history(user: UserPublic = Depends(user_authenticated)) -> PayoutsResponse:
    return PayoutsResponse(data=await sql_get_payouts_for_user(user.id))


@router.get("/admin/payouts", response_model=PayoutsResponse)
async def get_payouts(
    status: PayoutStatus | None = None, _: UserPublic = Depends(admin_authenticated)
) -> PayoutsResponse:
    return PayoutsResponse(data=await sql_get_payouts(status))


@router.post("/admin/payouts/{payout_id}/approve", response_model=PayoutResponse)
async def post_approve_payout(
    payout_id: PayoutId, user: UserPublic = Depends(admin_authenticated)
) -> PayoutResponse:
    return PayoutResponse(data=await approve_payout(payout_id, user.id))


@router.post("/admin/payouts/{payout_id}/reject", response_model=PayoutResponse)
async def post_reject_payout(
    payout_id: PayoutId,
    body: PayoutRejectBody,
    user: UserPublic = Depends(admin_authenticated),
) -> PayoutResponse:
    return PayoutResponse(data=await reject_payout(payout_id, user.id, body.reason))

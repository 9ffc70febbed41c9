from fastapi import APIRouter, Depends, Header, Request

from prizepool.config import config
from prizepool.logic.payments.provider import WebhookSignatureError, get_payment_provider
from prizepool.logic.payments.refund import refund_entry
from prizepool.logic.payments.webhook import handle_webhook_event
from prizepool.models.db.entry import RefundBody
from prizepool.models.db.user import UserPublic
from prizepool.routes.auth import user_authenticated
from prizepool.routes.models import EntryResponse, WebhookReceivedResponse
from prizepool.utils.errors import PreconditionFailed

router = APIRouter(prefix=config.api_prefix)


@router.post("/payments/webhook", response_model=WebhookReceivedResponse)
async def post_payment_webhook(
    request: Request, stripe_signature: str | None = Header(default=None)
) -> WebhookReceivedResponse:
    provider = get_payment_provider()
    payload = await request.body()
    try:
        event = provider.construct_webhook_event(payload, stripe_signature)
    except WebhookSignatureError as exc:
        raise PreconditionFailed(str(exc), reason="INVALID_SIGNATURE") from exc

    await handle_webhook_event(event, provider)
    return WebhookReceivedResponse()


@router.post("/payments/refund", response_model=EntryResponse)
async def post_refund(
    body: RefundBody, user: UserPublic = Depends(user_authenticated)
) -> EntryResponse:
    return EntryResponse(data=await refund_entry(body.tournament_id, user.id))

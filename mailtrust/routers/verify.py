# mailtrust/routers/verify.py
import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from ..errors import InputError
from ..schemas import CamelModel, User, VerificationResult
from ..services import quota
from ..services.scoring import Services, recent_verifications, record_verification, verifications_for_user
from ..verifier.syntax_engine import is_syntax_valid
from .deps import get_current_user, get_services, get_settings

LOG = logging.getLogger("mailtrust.api")

router = APIRouter()


class EmailBody(CamelModel):
    email: str


class BulkBody(CamelModel):
    emails: List[str]


@router.get("/verify")
async def verify_email(
    email: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
    user: User = Depends(get_current_user),
):
    result = await services.engine.verify(email)
    try:
        await record_verification(services.store, result, user.id)
    except Exception:
        LOG.exception("Failed to add verification record for %s", email)
    return result


@router.post("/verify")
async def verify_email_metered(
    body: EmailBody,
    services: Services = Depends(get_services),
    settings=Depends(get_settings),
    user: User = Depends(get_current_user),
):
    if not is_syntax_valid(body.email.strip()):
        raise InputError("Please enter a valid email address")
    quota.ensure_capacity(user, settings.VERIFY_COST)

    result = await services.engine.verify_with_reputation(body.email)
    reputation = await services.ledger.get_reputation(body.email)

    await record_verification(services.store, result, user.id)
    user = await quota.consume(services.store, user, settings.VERIFY_COST)

    return {
        **result.model_dump(by_alias=True),
        "reputationData": reputation,
        "apiCallsRemaining": user.api_calls_remaining,
        "apiCallsTotal": quota.usage(user)["total"],
    }


@router.post("/verify/bulk")
async def verify_bulk(
    body: BulkBody,
    services: Services = Depends(get_services),
    settings=Depends(get_settings),
    user: User = Depends(get_current_user),
):
    if not body.emails:
        raise InputError("At least one email is required")
    if len(body.emails) > settings.MAX_BULK_EMAILS:
        raise InputError(f"Maximum {settings.MAX_BULK_EMAILS} emails allowed per bulk request")
    quota.ensure_capacity(user, settings.BULK_VERIFY_COST)
    user = await quota.consume(services.store, user, settings.BULK_VERIFY_COST)

    results = await services.engine.verify_bulk(body.emails)
    for item in results:
        if isinstance(item, VerificationResult):
            try:
                await record_verification(services.store, item, user.id)
            except Exception:
                LOG.exception("Failed to add verification record for %s", item.email)

    return {
        "results": results,
        "apiCallsRemaining": user.api_calls_remaining,
        "apiCallsTotal": quota.usage(user)["total"],
    }


@router.get("/verifications/recent")
async def recent(
    page: int = 1,
    limit: int = 10,
    services: Services = Depends(get_services),
):
    return await recent_verifications(services.store, page, limit)


@router.get("/verifications/mine")
async def mine(
    page: int = 1,
    limit: int = 20,
    services: Services = Depends(get_services),
    user: User = Depends(get_current_user),
):
    return await verifications_for_user(services.store, user.id, page, limit)

# mailtrust/routers/users.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..schemas import CamelModel, Plan, User
from ..services import quota
from ..services.scoring import Services
from .deps import get_current_user, get_services

router = APIRouter()


class PlanBody(CamelModel):
    plan: Plan


def next_reset_date(today: datetime | None = None) -> str:
    """First day of next month, UTC."""
    today = today or datetime.now(timezone.utc)
    if today.month == 12:
        nxt = datetime(today.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        nxt = datetime(today.year, today.month + 1, 1, tzinfo=timezone.utc)
    return nxt.isoformat()


@router.get("/usage")
async def get_usage(user: User = Depends(get_current_user)):
    used = quota.usage(user)
    return {
        "username": user.username,
        "plan": user.plan,
        "apiCallsUsed": used["used"],
        "apiCallsRemaining": user.api_calls_remaining,
        "apiCallsTotal": used["total"],
        "nextReset": next_reset_date(),
    }


@router.post("/reset-api-calls")
async def reset_api_calls(services: Services = Depends(get_services), user: User = Depends(get_current_user)):
    user = await quota.reset_calls(services.store, user)
    return {"message": "API calls reset successfully", "apiCallsRemaining": user.api_calls_remaining}


@router.post("/update-plan")
async def update_plan(
    body: PlanBody,
    services: Services = Depends(get_services),
    user: User = Depends(get_current_user),
):
    user = await quota.change_plan(services.store, user, body.plan)
    return {
        "success": True,
        "message": f"Plan successfully updated to {user.plan.value}",
        "user": {
            "username": user.username,
            "plan": user.plan,
            "apiCallsRemaining": user.api_calls_remaining,
            "apiCallsTotal": quota.usage(user)["total"],
        },
    }

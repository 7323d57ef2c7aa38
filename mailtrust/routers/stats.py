# mailtrust/routers/stats.py
from fastapi import APIRouter, Depends

from ..schemas import User
from ..services import quota
from ..services.scoring import Services
from .deps import get_current_user, get_services

router = APIRouter()

# dashboard figures are computed over the most recent verifications only
STATS_WINDOW = 100


@router.get("/stats")
async def stats(services: Services = Depends(get_services), user: User = Depends(get_current_user)):
    verifications, _ = await services.store.page_verifications(0, STATS_WINDOW)
    checked = len(verifications)
    temp = sum(1 for v in verifications if v.is_temp_email)
    return {
        "emailsChecked": checked,
        "tempEmailsDetected": temp,
        "tempEmailRate": round(temp / checked * 100, 1) if checked else 0.0,
        "totalDomains": await services.registry.count(),
        "apiCallsRemaining": user.api_calls_remaining,
        "apiCallsTotal": quota.usage(user)["total"],
        "plan": user.plan,
    }

# mailtrust/routers/reputation.py
from typing import Optional

from fastapi import APIRouter, Depends

from ..schemas import CamelModel
from ..services.scoring import Services
from .deps import get_services

router = APIRouter()


class ReportBody(CamelModel):
    email: str
    report_type: str
    metadata: Optional[str] = None


@router.get("/email/{email}")
async def email_reputation(email: str, services: Services = Depends(get_services)):
    reputation = await services.ledger.get_reputation(email)
    return reputation or {"exists": False}


@router.get("/domain/{domain}")
async def domain_reputation(domain: str, services: Services = Depends(get_services)):
    reputation = await services.ledger.get_by_domain(domain)
    return reputation or {"exists": False}


@router.post("/report")
async def report(body: ReportBody, services: Services = Depends(get_services)):
    return await services.ledger.report(body.email, body.report_type, body.metadata)


@router.get("/most-reported")
async def most_reported(
    page: int = 1,
    limit: int = 10,
    services: Services = Depends(get_services),
):
    return await services.ledger.most_reported(limit=limit, page=page)

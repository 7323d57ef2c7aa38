# mailtrust/routers/temp_domains.py
from fastapi import APIRouter, Depends

from ..errors import NotFoundError
from ..schemas import CamelModel
from ..services.scoring import Services
from .deps import get_services

router = APIRouter()


class DomainBody(CamelModel):
    domain: str


@router.get("/temp-domains")
async def list_temp_domains(
    page: int = 1,
    limit: int = 20,
    services: Services = Depends(get_services),
):
    return await services.registry.list_paginated(page, limit)


@router.post("/temp-domains", status_code=201)
async def add_temp_domain(body: DomainBody, services: Services = Depends(get_services)):
    return await services.registry.add(body.domain)


@router.get("/temp-domains/{domain_id}")
async def get_temp_domain(domain_id: int, services: Services = Depends(get_services)):
    entry = await services.registry.get(domain_id)
    if entry is None:
        raise NotFoundError("Domain not found")
    return entry


@router.patch("/temp-domains/{domain_id}")
async def update_temp_domain(domain_id: int, body: DomainBody, services: Services = Depends(get_services)):
    entry = await services.registry.update(domain_id, body.domain)
    if entry is None:
        raise NotFoundError("Domain not found")
    return entry


@router.delete("/temp-domains/{domain_id}", status_code=204)
async def delete_temp_domain(domain_id: int, services: Services = Depends(get_services)):
    if not await services.registry.delete(domain_id):
        raise NotFoundError("Domain not found")


@router.get("/is-temp-domain/{domain}")
async def is_temp_domain(domain: str, services: Services = Depends(get_services)):
    return {"domain": domain, "isTempDomain": await services.registry.is_temp_domain(domain)}

# mailtrust/routers/deps.py
from fastapi import Depends, Request

from ..errors import NotFoundError
from ..schemas import User
from ..services.scoring import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request):
    return request.app.state.settings


async def get_current_user(request: Request, services: Services = Depends(get_services)) -> User:
    # no auth layer: every request acts as the demo user
    user = await services.store.get_user(request.app.state.demo_user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user

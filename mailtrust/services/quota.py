# mailtrust/services/quota.py
# Per-user API call quota. Metering belongs to callers of the engine; the
# engine only publishes how much each operation costs.
import secrets
from typing import Dict

from ..errors import CapacityError
from ..schemas import Plan, User
from ..storage import Store

PLAN_LIMITS: Dict[Plan, int] = {
    Plan.free: 10,
    Plan.premium: 1000,
    Plan.enterprise: 10000,
}

DEMO_USERNAME = "demouser"


def plan_total(plan: Plan) -> int:
    return PLAN_LIMITS[Plan(plan)]


def usage(user: User) -> dict:
    total = plan_total(user.plan)
    return {"used": total - user.api_calls_remaining, "total": total}


def ensure_capacity(user: User, cost: int) -> None:
    if user.api_calls_remaining < cost:
        raise CapacityError(
            f"API limit exceeded: operation requires {cost} API calls, "
            f"but only {user.api_calls_remaining} remain"
        )


async def consume(store: Store, user: User, cost: int) -> User:
    updated = user.model_copy(update={"api_calls_remaining": max(0, user.api_calls_remaining - cost)})
    return await store.save_user(updated)


async def reset_calls(store: Store, user: User) -> User:
    return await store.save_user(user.model_copy(update={"api_calls_remaining": plan_total(user.plan)}))


async def change_plan(store: Store, user: User, plan: Plan) -> User:
    plan = Plan(plan)
    return await reset_calls(store, user.model_copy(update={"plan": plan}))


async def ensure_demo_user(store: Store) -> User:
    user = await store.get_user_by_username(DEMO_USERNAME)
    if user is None:
        user = await store.create_user(DEMO_USERNAME, secrets.token_hex(32), PLAN_LIMITS[Plan.free])
    return user

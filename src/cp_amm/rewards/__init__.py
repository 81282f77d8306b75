"""Rewards — reward-кампании пула.

- Слоты Uninitialized → Initialized
- Блокировка смены длительности во время кампании
- Подключаемая политика ролей (admin / funder)
"""

from .authority import Role, RoleResolver, can_edit_reward, make_role_resolver, resolve_role
from .manager import (
    RewardDurationUpdate,
    RewardFunderUpdate,
    RewardFundingResult,
    RewardInitResult,
    RewardStreamManager,
)

__all__ = [
    "Role",
    "RoleResolver",
    "can_edit_reward",
    "make_role_resolver",
    "resolve_role",
    "RewardStreamManager",
    "RewardInitResult",
    "RewardDurationUpdate",
    "RewardFunderUpdate",
    "RewardFundingResult",
]

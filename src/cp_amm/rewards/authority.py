"""Авторизация правок reward-слотов.

Роль вызывающего определяется одной функцией resolve_role(caller, pool, reward_index).
Ядро использует результат как непрозрачный pass/fail: правка разрешена ADMIN и FUNDER.
Порядок проверки ролей — подключаемая политика (RoleResolver).
"""

from enum import Enum
from typing import Callable, FrozenSet, Iterable

from cp_amm.core.domain.pool import Pool


class Role(str, Enum):
    """Роль вызывающего относительно reward-слота."""

    ADMIN = "admin"
    FUNDER = "funder"
    NONE = "none"


RoleResolver = Callable[[str, Pool, int], Role]


def resolve_role(
    caller: str,
    pool: Pool,
    reward_index: int,
    admins: FrozenSet[str] = frozenset(),
) -> Role:
    """Роль по умолчанию: администратор пула (admins или creator), затем funder слота.

    Args:
        caller: аутентифицированный вызывающий
        pool: пул
        reward_index: индекс слота (уже проверен вызывающим кодом)
        admins: административные ключи развёртывания
    """
    if caller in admins or caller == pool.creator:
        return Role.ADMIN

    reward_info = pool.reward_infos[reward_index]
    if reward_info.initialized and reward_info.funder == caller:
        return Role.FUNDER

    return Role.NONE


def make_role_resolver(admins: Iterable[str] = ()) -> RoleResolver:
    """RoleResolver с фиксированным набором администраторов."""
    admin_set = frozenset(admins)

    def _resolver(caller: str, pool: Pool, reward_index: int) -> Role:
        return resolve_role(caller, pool, reward_index, admin_set)

    return _resolver


def can_edit_reward(role: Role) -> bool:
    return role in (Role.ADMIN, Role.FUNDER)

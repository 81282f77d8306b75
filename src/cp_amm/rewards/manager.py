"""Reward Stream Manager — управление reward-слотами пула.

- До NUM_REWARDS независимых кампаний на пул, у каждой свой funder и длительность
- Состояния слота: Uninitialized → Initialized
- Длительность меняется только после окончания кампании (reward_duration_end < now)
- Funder меняется в любой момент, в том числе во время кампании

Менеджер не хранит состояние: каждая операция принимает Pool и возвращает новый Pool
в результате перехода. Коммит результата — ответственность вызывающего.
"""

from dataclasses import dataclass
from typing import Optional

from cp_amm.core.constants import DEFAULT_LIMITS, ProtocolLimits
from cp_amm.core.domain.pool import Pool
from cp_amm.core.domain.reward import RewardInfo
from cp_amm.core.errors import (
    InvalidParameterError,
    PoolErrorCode,
    StateMismatchError,
    UnauthorizedError,
)
from cp_amm.rewards.authority import RoleResolver, can_edit_reward, make_role_resolver


@dataclass(frozen=True)
class RewardInitResult:
    """Результат init_reward."""

    pool: Pool
    reward_index: int
    reward_info: RewardInfo


@dataclass(frozen=True)
class RewardDurationUpdate:
    """Результат update_reward_duration."""

    pool: Pool
    reward_index: int
    old_reward_duration: int
    new_reward_duration: int


@dataclass(frozen=True)
class RewardFunderUpdate:
    """Результат update_reward_funder."""

    pool: Pool
    reward_index: int
    old_funder: str
    new_funder: str


@dataclass(frozen=True)
class RewardFundingResult:
    """Результат fund_reward."""

    pool: Pool
    reward_index: int
    pre_reward_rate: int
    post_reward_rate: int
    reward_duration_end: int


class RewardStreamManager:
    """Переходы reward-слотов с проверкой границ, состояния и авторизации.

    Порядок проверок в каждой операции:
    1. Индекс слота → INVALID_REWARD_INDEX
    2. Параметры (длительность, funder, сумма)
    3. Состояние слота (initialized / кампания идёт)
    4. Авторизация через RoleResolver → UNAUTHORIZED
    """

    def __init__(
        self,
        limits: ProtocolLimits = DEFAULT_LIMITS,
        role_resolver: Optional[RoleResolver] = None,
    ):
        """
        Args:
            limits: границы развёртывания (NUM_REWARDS, длительности)
            role_resolver: политика ролей (по умолчанию — без внешних администраторов)
        """
        self.limits = limits
        self.role_resolver = role_resolver or make_role_resolver()

    def init_reward(
        self,
        pool: Pool,
        reward_index: int,
        caller: str,
        mint: str,
        vault: str,
        funder: str,
        reward_duration: int,
        reward_token_flag: int = 0,
    ) -> RewardInitResult:
        """Инициализация слота: Uninitialized → Initialized.

        Raises:
            InvalidParameterError: INVALID_REWARD_INDEX, INVALID_REWARD_DURATION
            StateMismatchError: REWARD_INITIALIZED
            UnauthorizedError: вызывающий не может править слот
        """
        reward_info = self._slot(pool, reward_index)
        self._check_duration(reward_duration)

        if reward_info.initialized:
            raise StateMismatchError(
                PoolErrorCode.REWARD_INITIALIZED, f"reward slot {reward_index} already initialized"
            )

        self._check_authority(caller, pool, reward_index)

        new_info = reward_info.init_reward(mint, vault, funder, reward_duration, reward_token_flag)
        return RewardInitResult(
            pool=pool.with_reward_info(reward_index, new_info),
            reward_index=reward_index,
            reward_info=new_info,
        )

    def update_reward_duration(
        self,
        pool: Pool,
        reward_index: int,
        caller: str,
        new_reward_duration: int,
        current_time: int,
    ) -> RewardDurationUpdate:
        """Смена длительности закончившейся кампании.

        Raises:
            InvalidParameterError: INVALID_REWARD_INDEX, INVALID_REWARD_DURATION
            StateMismatchError: REWARD_UNINITIALIZED, IDENTICAL_REWARD_DURATION,
                REWARD_CAMPAIGN_IN_PROGRESS
            UnauthorizedError: вызывающий не может править слот
        """
        reward_info = self._slot(pool, reward_index)
        self._check_duration(new_reward_duration)
        self._check_initialized(reward_info, reward_index)

        if reward_info.reward_duration == new_reward_duration:
            raise StateMismatchError(
                PoolErrorCode.IDENTICAL_REWARD_DURATION,
                f"reward duration already {new_reward_duration}",
            )

        # только после полного окончания предыдущей кампании
        if not reward_info.reward_duration_end < current_time:
            raise StateMismatchError(
                PoolErrorCode.REWARD_CAMPAIGN_IN_PROGRESS,
                f"campaign ends at {reward_info.reward_duration_end}, now {current_time}",
            )

        self._check_authority(caller, pool, reward_index)

        new_info = reward_info.model_copy(update={"reward_duration": new_reward_duration})
        return RewardDurationUpdate(
            pool=pool.with_reward_info(reward_index, new_info),
            reward_index=reward_index,
            old_reward_duration=reward_info.reward_duration,
            new_reward_duration=new_reward_duration,
        )

    def update_reward_funder(
        self,
        pool: Pool,
        reward_index: int,
        caller: str,
        new_funder: str,
    ) -> RewardFunderUpdate:
        """Смена funder слота (допустима во время кампании).

        Raises:
            InvalidParameterError: INVALID_REWARD_INDEX
            StateMismatchError: REWARD_UNINITIALIZED, IDENTICAL_FUNDER
            UnauthorizedError: вызывающий не может править слот
        """
        reward_info = self._slot(pool, reward_index)
        self._check_initialized(reward_info, reward_index)

        if reward_info.funder == new_funder:
            raise StateMismatchError(PoolErrorCode.IDENTICAL_FUNDER, f"funder already {new_funder}")

        self._check_authority(caller, pool, reward_index)

        new_info = reward_info.model_copy(update={"funder": new_funder})
        return RewardFunderUpdate(
            pool=pool.with_reward_info(reward_index, new_info),
            reward_index=reward_index,
            old_funder=reward_info.funder or "",
            new_funder=new_funder,
        )

    def fund_reward(
        self,
        pool: Pool,
        reward_index: int,
        caller: str,
        amount: int,
        current_time: int,
    ) -> RewardFundingResult:
        """Пополнение кампании funder'ом; кампания (пере)запускается от current_time.

        Args:
            amount: сумма, фактически поступившая в vault (после комиссии перевода)

        Raises:
            InvalidParameterError: INVALID_REWARD_INDEX, AMOUNT_IS_ZERO
            StateMismatchError: REWARD_UNINITIALIZED
            UnauthorizedError: вызывающий не funder слота
        """
        reward_info = self._slot(pool, reward_index)
        if amount <= 0:
            raise InvalidParameterError(PoolErrorCode.AMOUNT_IS_ZERO, "funding amount must be > 0")
        self._check_initialized(reward_info, reward_index)

        if reward_info.funder != caller:
            raise UnauthorizedError(f"{caller} is not funder of reward slot {reward_index}")

        new_info = reward_info.update_rate_after_funding(current_time, amount)
        return RewardFundingResult(
            pool=pool.with_reward_info(reward_index, new_info),
            reward_index=reward_index,
            pre_reward_rate=reward_info.reward_rate,
            post_reward_rate=new_info.reward_rate,
            reward_duration_end=new_info.reward_duration_end,
        )

    def _slot(self, pool: Pool, reward_index: int) -> RewardInfo:
        if not self.limits.is_valid_reward_index(reward_index):
            raise InvalidParameterError(
                PoolErrorCode.INVALID_REWARD_INDEX,
                f"reward index {reward_index} outside [0, {self.limits.num_rewards})",
            )
        return pool.reward_info(reward_index)

    def _check_duration(self, reward_duration: int) -> None:
        if not self.limits.is_valid_reward_duration(reward_duration):
            raise InvalidParameterError(
                PoolErrorCode.INVALID_REWARD_DURATION,
                f"reward duration {reward_duration} outside "
                f"[{self.limits.min_reward_duration}, {self.limits.max_reward_duration}]",
            )

    def _check_initialized(self, reward_info: RewardInfo, reward_index: int) -> None:
        if not reward_info.initialized:
            raise StateMismatchError(
                PoolErrorCode.REWARD_UNINITIALIZED, f"reward slot {reward_index} not initialized"
            )

    def _check_authority(self, caller: str, pool: Pool, reward_index: int) -> None:
        role = self.role_resolver(caller, pool, reward_index)
        if not can_edit_reward(role):
            raise UnauthorizedError(f"{caller} cannot edit reward slot {reward_index}")

"""
PoolEngine — операции пула поверх коллабораторов

Каждая операция выполняется в четыре шага:
1. Stage: загрузка сущностей и расчёт новых immutable экземпляров
2. Validate: все предусловия и контракты событий
3. Transfer: один пакет переводов через CustodyTransfer.transfer_batch
   (последний шаг, который может упасть; пакет атомарен)
4. Commit: сохранение в EntityStore и публикация событий в NotificationSink

Ошибка на шагах 1-3 оставляет хранилище и журнал событий без изменений.
Ошибки не глотаются: PoolError и TransferError логируются и пробрасываются.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from cp_amm.core.contracts.validators import EventContractValidator
from cp_amm.core.domain.activation import (
    ActivationType,
    CollectFeeMode,
    PoolType,
    resolve_activation_point,
)
from cp_amm.core.domain.config import Config, ConfigType
from cp_amm.core.domain.events import (
    EvtAddLiquidity,
    EvtClaimProtocolFee,
    EvtCreatePosition,
    EvtFundReward,
    EvtInitializePool,
    EvtInitializeReward,
    EvtRemoveLiquidity,
    EvtUpdateRewardDuration,
    EvtUpdateRewardFunder,
    PoolEvent,
)
from cp_amm.core.domain.fees import PoolFeeParameters
from cp_amm.core.domain.pool import Pool
from cp_amm.core.domain.position import Position
from cp_amm.core.errors import (
    InvalidParameterError,
    PoolError,
    PoolErrorCode,
    TransferError,
    UnauthorizedError,
)
from cp_amm.core.math.curve import get_initialize_amounts, validate_price_range
from cp_amm.core.math.fixed_point import Rounding
from cp_amm.engine.collaborators import (
    Clock,
    CustodyTransfer,
    EntityStore,
    NotificationSink,
    TransferRecord,
)
from cp_amm.engine.config import EngineConfig
from cp_amm.engine.params import InitializeCustomizablePoolParameters, InitializePoolParameters
from cp_amm.rewards.authority import RoleResolver, make_role_resolver
from cp_amm.rewards.manager import RewardStreamManager

logger = logging.getLogger(__name__)


class PoolEngine:
    """
    Оркестратор операций пула.

    Не хранит состояние между вызовами: всё состояние в EntityStore.
    Предполагается один писатель на вызов (блокировок нет).
    """

    def __init__(
        self,
        config: EngineConfig,
        store: EntityStore,
        custody: CustodyTransfer,
        sink: NotificationSink,
        clock: Clock,
        role_resolver: Optional[RoleResolver] = None,
        contracts: Optional[EventContractValidator] = None,
    ):
        """
        Args:
            config: параметры развёртывания
            store: хранилище сущностей
            custody: переводы активов
            sink: приёмник событий
            clock: текущий слот / timestamp
            role_resolver: политика ролей reward-слотов (по умолчанию admins из config)
            contracts: валидатор событий (по умолчанию схемы пакета)
        """
        self.config = config
        self.store = store
        self.custody = custody
        self.sink = sink
        self.clock = clock
        self.rewards = RewardStreamManager(
            config.limits, role_resolver or make_role_resolver(config.admins)
        )
        self.contracts = contracts or EventContractValidator()

    # =========================================================================
    # POOL CREATION
    # =========================================================================

    def initialize_pool(
        self, config_index: int, params: InitializePoolParameters
    ) -> Tuple[Pool, Position]:
        """
        Создание пула по статическому шаблону.

        Комиссии, границы цены, тип активации и режим сбора берутся из Config.

        Raises:
            InvalidParameterError: INVALID_CONFIG_TYPE, IDENTICAL_TOKEN_MINT,
                INVALID_PRICE_RANGE, PRICE_RANGE_VIOLATION, AMOUNT_IS_ZERO,
                INVALID_ACTIVATION_POINT
            UnauthorizedError: шаблон закреплён за другим создателем
            TransferError: отказ перевода начальных сумм
        """
        with self._operation("initialize_pool", pool=params.pool_id):
            config = self.store.load_config(config_index)
            if config.config_type != ConfigType.STATIC or config.pool_fees is None:
                raise InvalidParameterError(
                    PoolErrorCode.INVALID_CONFIG_TYPE, f"config {config_index} is not static"
                )
            return self._initialize(
                config,
                params,
                pool_fees=config.pool_fees,
                sqrt_min_price=config.sqrt_min_price,
                sqrt_max_price=config.sqrt_max_price,
                activation_type=config.activation_type,
                collect_fee_mode=config.collect_fee_mode,
                has_alpha_vault=config.has_alpha_vault,
                pool_type=PoolType.PERMISSIONLESS,
            )

    def initialize_customizable_pool(
        self, config_index: int, params: InitializeCustomizablePoolParameters
    ) -> Tuple[Pool, Position]:
        """
        Создание пула по динамическому шаблону: параметры задаёт создатель.

        Raises:
            InvalidParameterError: INVALID_CONFIG_TYPE, INVALID_ACTIVATION_TYPE,
                INVALID_COLLECT_FEE_MODE, INVALID_FEE, INVALID_PRICE_RANGE,
                IDENTICAL_TOKEN_MINT, AMOUNT_IS_ZERO, INVALID_ACTIVATION_POINT
            UnauthorizedError: создатель не совпадает с pool_creator_authority
            TransferError: отказ перевода начальных сумм
        """
        with self._operation("initialize_customizable_pool", pool=params.pool_id):
            config = self.store.load_config(config_index)
            if config.config_type != ConfigType.DYNAMIC:
                raise InvalidParameterError(
                    PoolErrorCode.INVALID_CONFIG_TYPE, f"config {config_index} is not dynamic"
                )

            activation_type = ActivationType.from_raw(params.activation_type)
            collect_fee_mode = CollectFeeMode.from_raw(params.collect_fee_mode)
            validate_price_range(params.sqrt_min_price, params.sqrt_max_price, self.config.limits)
            params.pool_fees.validate_for_pool(collect_fee_mode, activation_type, self.config.limits)

            return self._initialize(
                config,
                params,
                pool_fees=params.pool_fees,
                sqrt_min_price=params.sqrt_min_price,
                sqrt_max_price=params.sqrt_max_price,
                activation_type=activation_type,
                collect_fee_mode=collect_fee_mode,
                has_alpha_vault=params.has_alpha_vault,
                pool_type=PoolType.CUSTOMIZABLE,
            )

    def _initialize(
        self,
        config: Config,
        params: InitializePoolParameters,
        pool_fees: PoolFeeParameters,
        sqrt_min_price: int,
        sqrt_max_price: int,
        activation_type: ActivationType,
        collect_fee_mode: CollectFeeMode,
        has_alpha_vault: bool,
        pool_type: PoolType,
    ) -> Tuple[Pool, Position]:
        if not config.can_create_pool(params.creator):
            raise UnauthorizedError(f"{params.creator} may not create pools with config {config.index}")
        if params.token_a_mint == params.token_b_mint:
            raise InvalidParameterError(
                PoolErrorCode.IDENTICAL_TOKEN_MINT, f"token_a_mint == token_b_mint ({params.token_a_mint})"
            )

        token_a_amount, token_b_amount = get_initialize_amounts(
            sqrt_min_price, sqrt_max_price, params.sqrt_price, params.liquidity, self.config.limits
        )
        if token_a_amount == 0 and token_b_amount == 0:
            raise InvalidParameterError(
                PoolErrorCode.AMOUNT_IS_ZERO, "initial liquidity backs no token amount"
            )

        activation_point = resolve_activation_point(
            activation_type,
            params.activation_point,
            self._current_point(activation_type),
            has_alpha_vault,
            self.config.limits,
        )
        alpha_vault = params.payer if has_alpha_vault else None

        pool = Pool(
            pool_id=params.pool_id,
            creator=params.creator,
            token_a_mint=params.token_a_mint,
            token_b_mint=params.token_b_mint,
            token_a_vault=params.token_a_vault,
            token_b_vault=params.token_b_vault,
            alpha_vault=alpha_vault,
            partner=config.pool_creator_authority,
            pool_fees=pool_fees,
            activation_point=activation_point,
            activation_type=activation_type,
            collect_fee_mode=collect_fee_mode,
            pool_type=pool_type,
            token_a_flag=params.token_a_flag,
            token_b_flag=params.token_b_flag,
            sqrt_min_price=sqrt_min_price,
            sqrt_max_price=sqrt_max_price,
            sqrt_price=params.sqrt_price,
        )
        position = Position(
            position_id=params.position_id,
            pool=params.pool_id,
            owner=params.creator,
            nft_mint=params.position_nft_mint,
        )
        pool, position = pool.apply_add_liquidity(position, params.liquidity)

        total_amount_a = self.custody.transfer_fee_included_amount(pool.token_a_mint, token_a_amount)
        total_amount_b = self.custody.transfer_fee_included_amount(pool.token_b_mint, token_b_amount)

        records = self._records(
            [
                EvtCreatePosition(
                    pool=pool.pool_id,
                    owner=position.owner,
                    position=position.position_id,
                    position_nft_mint=position.nft_mint,
                ),
                EvtInitializePool(
                    pool=pool.pool_id,
                    token_a_mint=pool.token_a_mint,
                    token_b_mint=pool.token_b_mint,
                    creator=pool.creator,
                    payer=params.payer,
                    alpha_vault=alpha_vault,
                    pool_fees=pool_fees,
                    sqrt_min_price=sqrt_min_price,
                    sqrt_max_price=sqrt_max_price,
                    activation_type=int(activation_type),
                    collect_fee_mode=int(collect_fee_mode),
                    liquidity=params.liquidity,
                    sqrt_price=params.sqrt_price,
                    activation_point=activation_point,
                    token_a_flag=params.token_a_flag,
                    token_b_flag=params.token_b_flag,
                    token_a_amount=token_a_amount,
                    token_b_amount=token_b_amount,
                    total_amount_a=total_amount_a,
                    total_amount_b=total_amount_b,
                    pool_type=int(pool_type),
                ),
            ]
        )

        self._transfer(
            TransferRecord(params.payer, pool.token_a_vault, pool.token_a_mint, total_amount_a),
            TransferRecord(params.payer, pool.token_b_vault, pool.token_b_mint, total_amount_b),
        )

        self.store.save_pool(pool)
        self.store.save_position(position)
        self._emit(records)

        logger.info(
            "Pool initialized",
            extra={
                "event": "cp_amm.initialize_pool",
                "pool": pool.pool_id,
                "pool_type": pool_type.name,
                "liquidity": pool.liquidity,
                "activation_point": activation_point,
            },
        )
        return pool, position

    # =========================================================================
    # POSITIONS & LIQUIDITY
    # =========================================================================

    def create_position(
        self, pool_id: str, position_id: str, owner: str, position_nft_mint: str
    ) -> Position:
        """Новая позиция с нулевой ликвидностью"""
        with self._operation("create_position", pool=pool_id, position=position_id):
            pool = self.store.load_pool(pool_id)
            position = Position(
                position_id=position_id,
                pool=pool.pool_id,
                owner=owner,
                nft_mint=position_nft_mint,
            )
            records = self._records(
                [
                    EvtCreatePosition(
                        pool=pool.pool_id,
                        owner=owner,
                        position=position_id,
                        position_nft_mint=position_nft_mint,
                    )
                ]
            )

            self.store.save_position(position)
            self._emit(records)

        logger.info(
            "Position created",
            extra={"event": "cp_amm.create_position", "pool": pool_id, "position": position_id},
        )
        return position

    def add_liquidity(
        self,
        position_id: str,
        owner: str,
        liquidity_delta: int,
        token_a_amount_threshold: int,
        token_b_amount_threshold: int,
    ) -> Tuple[Pool, Position]:
        """
        Добавление ликвидности. Суммы округляются вверх.

        Thresholds — максимум, который владелец готов заплатить (с комиссией перевода).

        Raises:
            UnauthorizedError: вызывающий не владелец позиции
            InvalidParameterError: AMOUNT_IS_ZERO, EXCEEDED_SLIPPAGE
            MathError: MATH_OVERFLOW
            TransferError: отказ перевода
        """
        with self._operation("add_liquidity", position=position_id):
            position = self.store.load_position(position_id)
            self._check_owner(position, owner)
            pool = self.store.load_pool(position.pool)

            new_pool, new_position = pool.apply_add_liquidity(position, liquidity_delta)
            amounts = pool.get_amounts_for_modify_liquidity(liquidity_delta, Rounding.UP)
            total_amount_a = self.custody.transfer_fee_included_amount(
                pool.token_a_mint, amounts.token_a_amount
            )
            total_amount_b = self.custody.transfer_fee_included_amount(
                pool.token_b_mint, amounts.token_b_amount
            )
            logger.debug(
                "add_liquidity amounts: a=%d b=%d total_a=%d total_b=%d",
                amounts.token_a_amount,
                amounts.token_b_amount,
                total_amount_a,
                total_amount_b,
            )

            if total_amount_a > token_a_amount_threshold or total_amount_b > token_b_amount_threshold:
                raise InvalidParameterError(
                    PoolErrorCode.EXCEEDED_SLIPPAGE,
                    f"required ({total_amount_a}, {total_amount_b}) exceeds "
                    f"({token_a_amount_threshold}, {token_b_amount_threshold})",
                )

            records = self._records(
                [
                    EvtAddLiquidity(
                        pool=pool.pool_id,
                        position=position_id,
                        owner=owner,
                        liquidity_delta=liquidity_delta,
                        token_a_amount_threshold=token_a_amount_threshold,
                        token_b_amount_threshold=token_b_amount_threshold,
                        token_a_amount=amounts.token_a_amount,
                        token_b_amount=amounts.token_b_amount,
                        total_amount_a=total_amount_a,
                        total_amount_b=total_amount_b,
                    )
                ]
            )

            self._transfer(
                TransferRecord(owner, pool.token_a_vault, pool.token_a_mint, total_amount_a),
                TransferRecord(owner, pool.token_b_vault, pool.token_b_mint, total_amount_b),
            )

            self.store.save_pool(new_pool)
            self.store.save_position(new_position)
            self._emit(records)

        logger.info(
            "Liquidity added",
            extra={
                "event": "cp_amm.add_liquidity",
                "pool": new_pool.pool_id,
                "position": position_id,
                "liquidity_delta": liquidity_delta,
            },
        )
        return new_pool, new_position

    def remove_liquidity(
        self,
        position_id: str,
        owner: str,
        liquidity_delta: int,
        token_a_amount_threshold: int,
        token_b_amount_threshold: int,
    ) -> Tuple[Pool, Position]:
        """
        Удаление ликвидности. Суммы округляются вниз.

        Thresholds — минимум, который владелец должен получить (за вычетом комиссии перевода).

        Raises:
            UnauthorizedError: вызывающий не владелец позиции
            InvalidParameterError: AMOUNT_IS_ZERO, EXCEEDED_SLIPPAGE
            StateMismatchError: INSUFFICIENT_LIQUIDITY
            TransferError: отказ перевода
        """
        with self._operation("remove_liquidity", position=position_id):
            position = self.store.load_position(position_id)
            self._check_owner(position, owner)
            if liquidity_delta <= 0:
                raise InvalidParameterError(PoolErrorCode.AMOUNT_IS_ZERO, "liquidity_delta must be > 0")
            pool = self.store.load_pool(position.pool)

            new_pool, new_position = pool.apply_remove_liquidity(position, liquidity_delta)
            amounts = pool.get_amounts_for_modify_liquidity(liquidity_delta, Rounding.DOWN)
            total_amount_a = self.custody.transfer_fee_excluded_amount(
                pool.token_a_mint, amounts.token_a_amount
            )
            total_amount_b = self.custody.transfer_fee_excluded_amount(
                pool.token_b_mint, amounts.token_b_amount
            )
            logger.debug(
                "remove_liquidity amounts: a=%d b=%d total_a=%d total_b=%d",
                amounts.token_a_amount,
                amounts.token_b_amount,
                total_amount_a,
                total_amount_b,
            )

            if total_amount_a < token_a_amount_threshold or total_amount_b < token_b_amount_threshold:
                raise InvalidParameterError(
                    PoolErrorCode.EXCEEDED_SLIPPAGE,
                    f"received ({total_amount_a}, {total_amount_b}) below "
                    f"({token_a_amount_threshold}, {token_b_amount_threshold})",
                )

            records = self._records(
                [
                    EvtRemoveLiquidity(
                        pool=pool.pool_id,
                        position=position_id,
                        owner=owner,
                        liquidity_delta=liquidity_delta,
                        token_a_amount_threshold=token_a_amount_threshold,
                        token_b_amount_threshold=token_b_amount_threshold,
                        token_a_amount=amounts.token_a_amount,
                        token_b_amount=amounts.token_b_amount,
                        total_amount_a=total_amount_a,
                        total_amount_b=total_amount_b,
                    )
                ]
            )

            self._transfer(
                TransferRecord(pool.token_a_vault, owner, pool.token_a_mint, amounts.token_a_amount),
                TransferRecord(pool.token_b_vault, owner, pool.token_b_mint, amounts.token_b_amount),
            )

            self.store.save_pool(new_pool)
            self.store.save_position(new_position)
            self._emit(records)

        logger.info(
            "Liquidity removed",
            extra={
                "event": "cp_amm.remove_liquidity",
                "pool": new_pool.pool_id,
                "position": position_id,
                "liquidity_delta": liquidity_delta,
            },
        )
        return new_pool, new_position

    def remove_all_liquidity(
        self,
        position_id: str,
        owner: str,
        token_a_amount_threshold: int,
        token_b_amount_threshold: int,
    ) -> Tuple[Pool, Position]:
        """Удаление всей свободной ликвидности позиции"""
        position = self.store.load_position(position_id)
        return self.remove_liquidity(
            position_id,
            owner,
            position.unlocked_liquidity,
            token_a_amount_threshold,
            token_b_amount_threshold,
        )

    # =========================================================================
    # PROTOCOL FEES
    # =========================================================================

    def claim_protocol_fee(
        self, pool_id: str, max_amount_a: int, max_amount_b: int
    ) -> Tuple[int, int]:
        """
        Вывод протокольных комиссий в treasury. Permissionless.

        Нулевые суммы не переводятся.

        Returns:
            (token_a_amount, token_b_amount)
        """
        with self._operation("claim_protocol_fee", pool=pool_id):
            pool = self.store.load_pool(pool_id)
            new_pool, token_a_amount, token_b_amount = pool.claim_protocol_fee(
                max_amount_a, max_amount_b
            )
            records = self._records(
                [
                    EvtClaimProtocolFee(
                        pool=pool_id,
                        token_a_amount=token_a_amount,
                        token_b_amount=token_b_amount,
                    )
                ]
            )

            treasury = self.config.treasury
            self._transfer(
                TransferRecord(pool.token_a_vault, treasury, pool.token_a_mint, token_a_amount),
                TransferRecord(pool.token_b_vault, treasury, pool.token_b_mint, token_b_amount),
            )

            self.store.save_pool(new_pool)
            self._emit(records)

        logger.info(
            "Protocol fee claimed",
            extra={
                "event": "cp_amm.claim_protocol_fee",
                "pool": pool_id,
                "token_a_amount": token_a_amount,
                "token_b_amount": token_b_amount,
            },
        )
        return token_a_amount, token_b_amount

    # =========================================================================
    # REWARDS
    # =========================================================================

    def initialize_reward(
        self,
        pool_id: str,
        reward_index: int,
        caller: str,
        reward_mint: str,
        reward_vault: str,
        funder: str,
        reward_duration: int,
        reward_token_flag: int = 0,
    ) -> Pool:
        """Инициализация reward-слота (admin или funder слота)"""
        with self._operation("initialize_reward", pool=pool_id, reward_index=reward_index):
            pool = self.store.load_pool(pool_id)
            result = self.rewards.init_reward(
                pool,
                reward_index,
                caller,
                mint=reward_mint,
                vault=reward_vault,
                funder=funder,
                reward_duration=reward_duration,
                reward_token_flag=reward_token_flag,
            )
            records = self._records(
                [
                    EvtInitializeReward(
                        pool=pool_id,
                        reward_mint=reward_mint,
                        funder=funder,
                        creator=caller,
                        reward_index=reward_index,
                        reward_duration=reward_duration,
                    )
                ]
            )
            self.store.save_pool(result.pool)
            self._emit(records)

        logger.info(
            "Reward initialized",
            extra={"event": "cp_amm.initialize_reward", "pool": pool_id, "reward_index": reward_index},
        )
        return result.pool

    def update_reward_duration(
        self, pool_id: str, reward_index: int, caller: str, new_reward_duration: int
    ) -> Pool:
        """Смена длительности закончившейся кампании"""
        with self._operation("update_reward_duration", pool=pool_id, reward_index=reward_index):
            pool = self.store.load_pool(pool_id)
            result = self.rewards.update_reward_duration(
                pool, reward_index, caller, new_reward_duration, self.clock.unix_timestamp()
            )
            records = self._records(
                [
                    EvtUpdateRewardDuration(
                        pool=pool_id,
                        reward_index=reward_index,
                        old_reward_duration=result.old_reward_duration,
                        new_reward_duration=result.new_reward_duration,
                    )
                ]
            )
            self.store.save_pool(result.pool)
            self._emit(records)

        logger.info(
            "Reward duration updated",
            extra={
                "event": "cp_amm.update_reward_duration",
                "pool": pool_id,
                "reward_index": reward_index,
                "new_reward_duration": new_reward_duration,
            },
        )
        return result.pool

    def update_reward_funder(
        self, pool_id: str, reward_index: int, caller: str, new_funder: str
    ) -> Pool:
        """Смена funder слота"""
        with self._operation("update_reward_funder", pool=pool_id, reward_index=reward_index):
            pool = self.store.load_pool(pool_id)
            result = self.rewards.update_reward_funder(pool, reward_index, caller, new_funder)
            records = self._records(
                [
                    EvtUpdateRewardFunder(
                        pool=pool_id,
                        reward_index=reward_index,
                        old_funder=result.old_funder,
                        new_funder=result.new_funder,
                    )
                ]
            )
            self.store.save_pool(result.pool)
            self._emit(records)

        logger.info(
            "Reward funder updated",
            extra={"event": "cp_amm.update_reward_funder", "pool": pool_id, "reward_index": reward_index},
        )
        return result.pool

    def fund_reward(self, pool_id: str, reward_index: int, caller: str, amount: int) -> Pool:
        """
        Пополнение reward-кампании funder'ом.

        Скорость считается от суммы, дошедшей до vault (за вычетом комиссии перевода).
        """
        with self._operation("fund_reward", pool=pool_id, reward_index=reward_index):
            pool = self.store.load_pool(pool_id)
            reward_info = pool.reward_info(reward_index)
            amount_in = amount
            if reward_info.initialized:
                amount_in = self.custody.transfer_fee_excluded_amount(reward_info.mint, amount)

            result = self.rewards.fund_reward(
                pool, reward_index, caller, amount_in, self.clock.unix_timestamp()
            )
            records = self._records(
                [
                    EvtFundReward(
                        pool=pool_id,
                        funder=caller,
                        mint_reward=reward_info.mint,
                        reward_index=reward_index,
                        amount=amount,
                        transfer_fee_excluded_amount_in=amount_in,
                        reward_duration_end=result.reward_duration_end,
                        pre_reward_rate=result.pre_reward_rate,
                        post_reward_rate=result.post_reward_rate,
                    )
                ]
            )

            self._transfer(TransferRecord(caller, reward_info.vault, reward_info.mint, amount))

            self.store.save_pool(result.pool)
            self._emit(records)

        logger.info(
            "Reward funded",
            extra={
                "event": "cp_amm.fund_reward",
                "pool": pool_id,
                "reward_index": reward_index,
                "post_reward_rate": result.post_reward_rate,
                "reward_duration_end": result.reward_duration_end,
            },
        )
        return result.pool

    # =========================================================================
    # HELPERS
    # =========================================================================

    @contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:
        """Логирование отказа операции с кодом ошибки; ошибка пробрасывается"""
        try:
            yield
        except PoolError as e:
            logger.warning(
                "%s rejected: %s",
                operation,
                e.code.value,
                extra={
                    "event": f"cp_amm.{operation}.rejected",
                    "error_code": e.code.value,
                    "error_category": e.category.value,
                    **context,
                },
            )
            raise
        except TransferError as e:
            logger.warning(
                "%s transfer failed: %s",
                operation,
                e,
                extra={"event": f"cp_amm.{operation}.transfer_failed", **context},
            )
            raise

    def _current_point(self, activation_type: ActivationType) -> int:
        if activation_type == ActivationType.SLOT:
            return self.clock.slot()
        return self.clock.unix_timestamp()

    def _check_owner(self, position: Position, caller: str) -> None:
        if position.owner != caller:
            raise UnauthorizedError(f"{caller} does not own position {position.position_id}")

    def _records(self, events: Sequence[PoolEvent]) -> List[Tuple[str, Dict[str, Any]]]:
        # контракты проверяются до переводов и коммита
        return [(event.event_name, self.contracts.to_record(event)) for event in events]

    def _emit(self, records: Sequence[Tuple[str, Dict[str, Any]]]) -> None:
        for event_name, record in records:
            self.sink.emit(event_name, record)

    def _transfer(self, *transfers: TransferRecord) -> None:
        # один вызов custody: пакет применяется целиком или не применяется
        batch = [transfer for transfer in transfers if transfer.amount > 0]
        if not batch:
            return
        for transfer in batch:
            logger.debug(
                "transfer %d %s: %s -> %s",
                transfer.amount,
                transfer.mint,
                transfer.source,
                transfer.destination,
            )
        self.custody.transfer_batch(batch)

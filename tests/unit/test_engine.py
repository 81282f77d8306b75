"""Тесты для PoolEngine.

Coverage:
- Создание пула по статическому и динамическому шаблону
- Позиции, add/remove liquidity, slippage, владелец
- Атомарность при отказе перевода
- Claim протокольных комиссий
- Reward-операции и события
- Логирование коммитов и отказов
"""

import logging

import pytest

from cp_amm.core.constants import MAX_SQRT_PRICE, MIN_REWARD_DURATION, MIN_SQRT_PRICE
from cp_amm.core.domain import (
    BaseFeeParameters,
    PoolFeeParameters,
    create_dynamic_config,
    create_static_config,
)
from cp_amm.core.errors import (
    InvalidParameterError,
    PoolErrorCode,
    StateMismatchError,
    TransferError,
    UnauthorizedError,
)
from cp_amm.core.math.fixed_point import ONE_Q64, U64_MAX
from cp_amm.engine import (
    EngineConfig,
    EventRecorder,
    FixedClock,
    InitializeCustomizablePoolParameters,
    InitializePoolParameters,
    InMemoryStore,
    PoolEngine,
    RecordingCustody,
)

STATIC_CONFIG = 0
DYNAMIC_CONFIG = 1
LIQUIDITY = 10**6 * ONE_Q64


@pytest.fixture
def pool_fees():
    return PoolFeeParameters(base_fee=BaseFeeParameters(cliff_fee_numerator=2_500_000))


@pytest.fixture
def store(pool_fees):
    store = InMemoryStore()
    store.save_config(
        create_static_config(STATIC_CONFIG, pool_fees, ONE_Q64, 4 * ONE_Q64, 0, 0)
    )
    store.save_config(create_dynamic_config(DYNAMIC_CONFIG, "partner"))
    return store


@pytest.fixture
def custody():
    return RecordingCustody()


@pytest.fixture
def sink():
    return EventRecorder()


@pytest.fixture
def clock():
    return FixedClock(timestamp=1_000_000, current_slot=500)


def make_engine(store, custody, sink, clock) -> PoolEngine:
    return PoolEngine(
        EngineConfig(treasury="treasury", admins=frozenset({"admin"})), store, custody, sink, clock
    )


@pytest.fixture
def engine(store, custody, sink, clock):
    return make_engine(store, custody, sink, clock)


def pool_params(**overrides) -> InitializePoolParameters:
    fields = dict(
        pool_id="pool-1",
        creator="creator",
        payer="creator",
        token_a_mint="mint-a",
        token_b_mint="mint-b",
        token_a_vault="vault-a",
        token_b_vault="vault-b",
        position_id="position-1",
        position_nft_mint="nft-1",
        liquidity=LIQUIDITY,
        sqrt_price=2 * ONE_Q64,
    )
    fields.update(overrides)
    return InitializePoolParameters(**fields)


def customizable_params(pool_fees, **overrides) -> InitializeCustomizablePoolParameters:
    fields = pool_params().model_dump()
    fields.update(
        creator="partner",
        payer="partner",
        pool_fees=pool_fees,
        sqrt_min_price=MIN_SQRT_PRICE,
        sqrt_max_price=MAX_SQRT_PRICE,
        activation_type=1,
        collect_fee_mode=1,
    )
    fields.update(overrides)
    return InitializeCustomizablePoolParameters(**fields)


@pytest.fixture
def initialized(engine):
    """Пул [1, 16] при цене 4: начальные суммы (250_000, 1_000_000)."""
    return engine.initialize_pool(STATIC_CONFIG, pool_params())


class TestInitializePool:
    """Тесты создания пула."""

    def test_static_pool(self, initialized, store, custody, sink):
        pool, position = initialized

        assert store.load_pool("pool-1") == pool
        assert store.load_position("position-1") == position
        assert pool.liquidity == LIQUIDITY
        assert position.unlocked_liquidity == LIQUIDITY
        assert position.owner == "creator"
        assert pool.activation_point == 500
        assert pool.pool_type == 0

        assert custody.balance_of("vault-a", "mint-a") == 250_000
        assert custody.balance_of("vault-b", "mint-b") == 1_000_000
        assert custody.balance_of("creator", "mint-a") == -250_000

        assert sink.names() == ["evt_create_position", "evt_initialize_pool"]
        record = sink.last("evt_initialize_pool")
        assert record["token_a_amount"] == 250_000
        assert record["total_amount_b"] == 1_000_000
        assert record["payer"] == "creator"

    def test_identical_mints(self, engine, store, sink):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_pool(STATIC_CONFIG, pool_params(token_b_mint="mint-a"))
        assert exc_info.value.code == PoolErrorCode.IDENTICAL_TOKEN_MINT
        assert store.pools == {}
        assert sink.events == []

    def test_wrong_config_type(self, engine):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_pool(DYNAMIC_CONFIG, pool_params())
        assert exc_info.value.code == PoolErrorCode.INVALID_CONFIG_TYPE

    def test_price_outside_config_range(self, engine):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_pool(STATIC_CONFIG, pool_params(sqrt_price=5 * ONE_Q64))
        assert exc_info.value.code == PoolErrorCode.PRICE_RANGE_VIOLATION

    def test_tiny_liquidity_rounds_up(self, engine, sink):
        """1 raw unit ликвидности: обе суммы округляются вверх до 1."""
        pool, _ = engine.initialize_pool(STATIC_CONFIG, pool_params(liquidity=1))

        assert pool.liquidity == 1
        record = sink.last("evt_initialize_pool")
        assert (record["token_a_amount"], record["token_b_amount"]) == (1, 1)

    def test_explicit_activation_point(self, engine):
        pool, _ = engine.initialize_pool(STATIC_CONFIG, pool_params(activation_point=10_000))
        assert pool.activation_point == 10_000

    def test_activation_point_in_past(self, engine):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_pool(STATIC_CONFIG, pool_params(activation_point=499))
        assert exc_info.value.code == PoolErrorCode.INVALID_ACTIVATION_POINT

    def test_transfer_fee_included(self, store, sink, clock):
        custody = RecordingCustody(transfer_fees={"mint-b": 10})
        engine = make_engine(store, custody, sink, clock)

        engine.initialize_pool(STATIC_CONFIG, pool_params())

        record = sink.last("evt_initialize_pool")
        assert record["token_b_amount"] == 1_000_000
        assert record["total_amount_b"] == 1_000_010
        assert custody.balance_of("vault-b", "mint-b") == 1_000_010


class TestInitializeCustomizablePool:
    """Тесты создания пула по динамическому шаблону."""

    def test_customizable_pool(self, engine, pool_fees):
        pool, position = engine.initialize_customizable_pool(
            DYNAMIC_CONFIG, customizable_params(pool_fees, sqrt_price=ONE_Q64)
        )
        assert pool.pool_type == 1
        assert pool.partner == "partner"
        assert pool.activation_type == 1
        assert pool.activation_point == 1_000_000
        assert pool.collect_fee_mode == 1
        assert position.owner == "partner"

    def test_creator_must_match_authority(self, engine, pool_fees, store):
        with pytest.raises(UnauthorizedError):
            engine.initialize_customizable_pool(
                DYNAMIC_CONFIG, customizable_params(pool_fees, sqrt_price=ONE_Q64, creator="other")
            )
        assert store.pools == {}

    def test_static_config_rejected(self, engine, pool_fees):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_customizable_pool(
                STATIC_CONFIG, customizable_params(pool_fees, sqrt_price=ONE_Q64)
            )
        assert exc_info.value.code == PoolErrorCode.INVALID_CONFIG_TYPE

    def test_invalid_fee(self, engine, pool_fees):
        fees = pool_fees.model_copy(update={"protocol_fee_percent": 150})
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_customizable_pool(
                DYNAMIC_CONFIG, customizable_params(fees, sqrt_price=ONE_Q64)
            )
        assert exc_info.value.code == PoolErrorCode.INVALID_FEE

    def test_unknown_activation_type(self, engine, pool_fees):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_customizable_pool(
                DYNAMIC_CONFIG, customizable_params(pool_fees, sqrt_price=ONE_Q64, activation_type=3)
            )
        assert exc_info.value.code == PoolErrorCode.INVALID_ACTIVATION_TYPE

    def test_alpha_vault_requires_activation_point(self, engine, pool_fees):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.initialize_customizable_pool(
                DYNAMIC_CONFIG,
                customizable_params(pool_fees, sqrt_price=ONE_Q64, has_alpha_vault=True),
            )
        assert exc_info.value.code == PoolErrorCode.INVALID_ACTIVATION_POINT

    def test_alpha_vault(self, engine, pool_fees, sink):
        pool, _ = engine.initialize_customizable_pool(
            DYNAMIC_CONFIG,
            customizable_params(
                pool_fees, sqrt_price=ONE_Q64, has_alpha_vault=True, activation_point=1_000_100
            ),
        )
        assert pool.alpha_vault == "partner"
        assert sink.last("evt_initialize_pool")["alpha_vault"] == "partner"


class TestLiquidity:
    """Тесты create_position / add / remove."""

    def test_create_position(self, engine, initialized, store, sink):
        position = engine.create_position("pool-1", "position-2", "lp", "nft-2")

        assert position.unlocked_liquidity == 0
        assert store.load_position("position-2") == position
        assert sink.last("evt_create_position")["owner"] == "lp"

    def test_create_position_unknown_pool(self, engine):
        with pytest.raises(KeyError):
            engine.create_position("missing", "position-2", "lp", "nft-2")

    def test_add_liquidity(self, engine, initialized, store, custody, sink):
        engine.create_position("pool-1", "position-2", "lp", "nft-2")

        pool, position = engine.add_liquidity("position-2", "lp", LIQUIDITY, U64_MAX, U64_MAX)

        assert pool.liquidity == 2 * LIQUIDITY
        assert position.unlocked_liquidity == LIQUIDITY
        assert store.load_pool("pool-1").liquidity == 2 * LIQUIDITY
        assert custody.balance_of("lp", "mint-a") == -250_000
        assert custody.balance_of("lp", "mint-b") == -1_000_000

        record = sink.last("evt_add_liquidity")
        assert record["token_a_amount"] == 250_000
        assert record["token_a_amount_threshold"] == U64_MAX

    def test_add_liquidity_slippage(self, engine, initialized, store, sink):
        events_before = list(sink.events)

        with pytest.raises(InvalidParameterError) as exc_info:
            engine.add_liquidity("position-1", "creator", LIQUIDITY, 249_999, U64_MAX)

        assert exc_info.value.code == PoolErrorCode.EXCEEDED_SLIPPAGE
        assert store.load_pool("pool-1").liquidity == LIQUIDITY
        assert sink.events == events_before

    def test_add_liquidity_threshold_exact(self, engine, initialized):
        pool, _ = engine.add_liquidity("position-1", "creator", LIQUIDITY, 250_000, 1_000_000)
        assert pool.liquidity == 2 * LIQUIDITY

    def test_not_owner(self, engine, initialized):
        with pytest.raises(UnauthorizedError):
            engine.add_liquidity("position-1", "intruder", 1, U64_MAX, U64_MAX)
        with pytest.raises(UnauthorizedError):
            engine.remove_liquidity("position-1", "intruder", 1, 0, 0)

    def test_remove_liquidity(self, engine, initialized, custody, sink):
        pool, position = engine.remove_liquidity("position-1", "creator", LIQUIDITY // 2, 0, 0)

        assert pool.liquidity == LIQUIDITY // 2
        assert position.unlocked_liquidity == LIQUIDITY // 2
        assert custody.balance_of("vault-a", "mint-a") == 125_000
        assert custody.balance_of("vault-b", "mint-b") == 500_000
        assert sink.last("evt_remove_liquidity")["total_amount_b"] == 500_000

    def test_remove_liquidity_slippage(self, engine, initialized):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.remove_liquidity("position-1", "creator", LIQUIDITY, 250_001, 0)
        assert exc_info.value.code == PoolErrorCode.EXCEEDED_SLIPPAGE

    def test_remove_exceeding_balance(self, engine, initialized, store):
        with pytest.raises(StateMismatchError) as exc_info:
            engine.remove_liquidity("position-1", "creator", LIQUIDITY + 1, 0, 0)
        assert exc_info.value.code == PoolErrorCode.INSUFFICIENT_LIQUIDITY
        assert store.load_position("position-1").unlocked_liquidity == LIQUIDITY

    def test_remove_zero(self, engine, initialized):
        with pytest.raises(InvalidParameterError) as exc_info:
            engine.remove_liquidity("position-1", "creator", 0, 0, 0)
        assert exc_info.value.code == PoolErrorCode.AMOUNT_IS_ZERO

    def test_remove_all_liquidity(self, engine, initialized, store, custody):
        pool, position = engine.remove_all_liquidity("position-1", "creator", 0, 0)

        assert pool.liquidity == 0
        assert position.unlocked_liquidity == 0
        assert store.load_position("position-1").unlocked_liquidity == 0
        assert custody.balance_of("vault-a", "mint-a") >= 0
        assert custody.balance_of("vault-b", "mint-b") >= 0

    def test_round_trip_keeps_vaults_solvent(self, engine, initialized, custody):
        """Add (UP) затем remove (DOWN) той же delta: хранилища не уходят в минус."""
        engine.create_position("pool-1", "position-2", "lp", "nft-2")
        delta = 3 * ONE_Q64 + 12345

        engine.add_liquidity("position-2", "lp", delta, U64_MAX, U64_MAX)
        engine.remove_liquidity("position-2", "lp", delta, 0, 0)

        assert custody.balance_of("lp", "mint-a") <= 0
        assert custody.balance_of("lp", "mint-b") <= 0


class TestAtomicity:
    """Отказ перевода не оставляет изменений."""

    def test_transfer_failure_on_add(self, store, sink, clock, initialized):
        pool_before = store.load_pool("pool-1")
        position_before = store.load_position("position-1")
        events_before = list(sink.events)
        engine = make_engine(store, RecordingCustody(fail_on_mint="mint-a"), sink, clock)

        with pytest.raises(TransferError):
            engine.add_liquidity("position-1", "creator", LIQUIDITY, U64_MAX, U64_MAX)

        assert store.load_pool("pool-1") == pool_before
        assert store.load_position("position-1") == position_before
        assert sink.events == events_before

    def test_transfer_failure_on_initialize(self, store, sink, clock):
        engine = make_engine(store, RecordingCustody(fail_on_mint="mint-a"), sink, clock)

        with pytest.raises(TransferError):
            engine.initialize_pool(STATIC_CONFIG, pool_params())

        assert store.pools == {}
        assert store.positions == {}
        assert sink.events == []

    @pytest.mark.parametrize("failing_mint", ["mint-a", "mint-b"])
    def test_failure_on_any_transfer_moves_nothing(
        self, store, sink, clock, initialized, failing_mint
    ):
        """Отказ любого перевода пакета: журнал переводов не меняется."""
        pool_before = store.load_pool("pool-1")
        custody = RecordingCustody(fail_on_mint=failing_mint)
        engine = make_engine(store, custody, sink, clock)

        with pytest.raises(TransferError):
            engine.add_liquidity("position-1", "creator", LIQUIDITY, U64_MAX, U64_MAX)
        with pytest.raises(TransferError):
            engine.remove_liquidity("position-1", "creator", LIQUIDITY // 2, 0, 0)

        assert custody.transfers == []
        assert store.load_pool("pool-1") == pool_before

    def test_second_transfer_failure_on_initialize(self, store, sink, clock):
        custody = RecordingCustody(fail_on_mint="mint-b")
        engine = make_engine(store, custody, sink, clock)

        with pytest.raises(TransferError):
            engine.initialize_pool(STATIC_CONFIG, pool_params())

        assert custody.transfers == []
        assert store.pools == {}
        assert sink.events == []

    def test_second_transfer_failure_on_claim(self, store, sink, clock, initialized):
        store.save_pool(store.load_pool("pool-1").accrue_protocol_fee(1000, 500))
        custody = RecordingCustody(fail_on_mint="mint-b")
        engine = make_engine(store, custody, sink, clock)

        with pytest.raises(TransferError):
            engine.claim_protocol_fee("pool-1", U64_MAX, U64_MAX)

        assert custody.balance_of("treasury", "mint-a") == 0
        assert store.load_pool("pool-1").protocol_fee_a == 1000


class TestClaimProtocolFee:
    """Тесты claim_protocol_fee."""

    def test_claim_to_treasury(self, engine, initialized, store, custody, sink):
        store.save_pool(store.load_pool("pool-1").accrue_protocol_fee(1000, 500))

        assert engine.claim_protocol_fee("pool-1", 10_000, 200) == (1000, 200)

        pool = store.load_pool("pool-1")
        assert (pool.protocol_fee_a, pool.protocol_fee_b) == (0, 300)
        assert custody.balance_of("treasury", "mint-a") == 1000
        assert custody.balance_of("treasury", "mint-b") == 200
        assert sink.last("evt_claim_protocol_fee") == {
            "pool": "pool-1",
            "token_a_amount": 1000,
            "token_b_amount": 200,
        }

    def test_zero_claim_skips_transfers(self, engine, initialized, custody, sink):
        transfers_before = len(custody.transfers)

        assert engine.claim_protocol_fee("pool-1", 10, 10) == (0, 0)

        assert len(custody.transfers) == transfers_before
        assert sink.names()[-1] == "evt_claim_protocol_fee"

    def test_negative_maximum_rejected(self, engine, initialized, store, custody, sink, caplog):
        store.save_pool(store.load_pool("pool-1").accrue_protocol_fee(1000, 0))
        transfers_before = list(custody.transfers)
        events_before = list(sink.events)

        with caplog.at_level(logging.WARNING, logger="cp_amm.engine.engine"):
            with pytest.raises(InvalidParameterError) as exc_info:
                engine.claim_protocol_fee("pool-1", -5, 0)

        assert exc_info.value.code == PoolErrorCode.INVALID_AMOUNT
        assert "claim_protocol_fee rejected: InvalidAmount" in caplog.text
        assert store.load_pool("pool-1").protocol_fee_a == 1000
        assert custody.transfers == transfers_before
        assert sink.events == events_before


class TestRewards:
    """Reward-операции через движок."""

    @pytest.fixture
    def reward_pool(self, engine, initialized):
        return engine.initialize_reward(
            "pool-1", 0, "admin", "reward-mint", "reward-vault", "funder", MIN_REWARD_DURATION
        )

    def test_initialize_reward(self, reward_pool, store, sink):
        assert store.load_pool("pool-1").reward_info(0).initialized
        record = sink.last("evt_initialize_reward")
        assert record["creator"] == "admin"
        assert record["funder"] == "funder"

    def test_initialize_reward_unauthorized(self, engine, initialized, store):
        with pytest.raises(UnauthorizedError):
            engine.initialize_reward(
                "pool-1", 0, "stranger", "reward-mint", "reward-vault", "funder", MIN_REWARD_DURATION
            )
        assert not store.load_pool("pool-1").reward_info(0).initialized

    def test_fund_reward(self, engine, reward_pool, store, custody, sink):
        pool = engine.fund_reward("pool-1", 0, "funder", MIN_REWARD_DURATION)

        info = pool.reward_info(0)
        assert info.reward_rate == ONE_Q64
        assert info.reward_duration_end == 1_000_000 + MIN_REWARD_DURATION
        assert store.load_pool("pool-1") == pool
        assert custody.balance_of("reward-vault", "reward-mint") == MIN_REWARD_DURATION

        record = sink.last("evt_fund_reward")
        assert record["pre_reward_rate"] == 0
        assert record["post_reward_rate"] == ONE_Q64
        assert record["transfer_fee_excluded_amount_in"] == MIN_REWARD_DURATION

    def test_fund_reward_transfer_fee_excluded(self, store, sink, clock, reward_pool):
        custody = RecordingCustody(transfer_fees={"reward-mint": MIN_REWARD_DURATION})
        engine = make_engine(store, custody, sink, clock)

        pool = engine.fund_reward("pool-1", 0, "funder", 2 * MIN_REWARD_DURATION)

        assert pool.reward_info(0).reward_rate == ONE_Q64
        assert sink.last("evt_fund_reward")["amount"] == 2 * MIN_REWARD_DURATION

    def test_update_duration_blocked_during_campaign(self, engine, reward_pool, clock, store):
        engine.fund_reward("pool-1", 0, "funder", MIN_REWARD_DURATION)

        with pytest.raises(StateMismatchError) as exc_info:
            engine.update_reward_duration("pool-1", 0, "admin", 2 * MIN_REWARD_DURATION)
        assert exc_info.value.code == PoolErrorCode.REWARD_CAMPAIGN_IN_PROGRESS

        clock.timestamp += MIN_REWARD_DURATION + 1
        pool = engine.update_reward_duration("pool-1", 0, "admin", 2 * MIN_REWARD_DURATION)

        assert pool.reward_info(0).reward_duration == 2 * MIN_REWARD_DURATION
        assert store.load_pool("pool-1") == pool

    def test_update_funder(self, engine, reward_pool, sink):
        pool = engine.update_reward_funder("pool-1", 0, "funder", "new-funder")

        assert pool.reward_info(0).funder == "new-funder"
        assert sink.last("evt_update_reward_funder") == {
            "pool": "pool-1",
            "reward_index": 0,
            "old_funder": "funder",
            "new_funder": "new-funder",
        }


class TestLogging:
    """Логирование коммитов и отказов."""

    def test_commit_logged_at_info(self, engine, caplog):
        with caplog.at_level(logging.INFO, logger="cp_amm.engine.engine"):
            engine.initialize_pool(STATIC_CONFIG, pool_params())
        assert "Pool initialized" in caplog.text

    def test_rejection_logged_with_code(self, engine, initialized, caplog):
        with caplog.at_level(logging.WARNING, logger="cp_amm.engine.engine"):
            with pytest.raises(InvalidParameterError):
                engine.add_liquidity("position-1", "creator", LIQUIDITY, 0, 0)

        assert "add_liquidity rejected: ExceededSlippage" in caplog.text
        record = caplog.records[-1]
        assert record.error_code == "ExceededSlippage"
        assert record.levelno == logging.WARNING

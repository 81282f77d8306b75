"""
PoolError — таксономия ошибок ядра пула

Каждое отклонённое предусловие отображается в отдельный код PoolErrorCode.
Коды сгруппированы по категориям:
- VALIDATION: некорректный параметр от вызывающего (цена, сумма, длительность, индекс)
- STATE_MISMATCH: операция невалидна для текущего состояния (слот уже/ещё не инициализирован)
- AUTHORIZATION: у вызывающего нет нужной роли
- ARITHMETIC: переполнение, деление на ноль, невалидное приведение типа

ИНВАРИАНТ: любая ошибка терминальна для операции и возникает ДО мутации состояния.
Внутренних ретраев нет, ошибки не глотаются.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Категория ошибки"""

    VALIDATION = "validation"
    STATE_MISMATCH = "state_mismatch"
    AUTHORIZATION = "authorization"
    ARITHMETIC = "arithmetic"


class PoolErrorCode(str, Enum):
    """Перечисление всех кодов отказа ядра"""

    # Arithmetic
    MATH_OVERFLOW = "MathOverflow"
    DIVISION_BY_ZERO = "DivisionByZero"
    TYPE_CAST_FAILED = "TypeCastFailed"

    # Validation
    INVALID_PRICE_RANGE = "InvalidPriceRange"
    PRICE_RANGE_VIOLATION = "PriceRangeViolation"
    AMOUNT_IS_ZERO = "AmountIsZero"
    INVALID_REWARD_INDEX = "InvalidRewardIndex"
    INVALID_REWARD_DURATION = "InvalidRewardDuration"
    INVALID_FEE = "InvalidFee"
    INVALID_ACTIVATION_TYPE = "InvalidActivationType"
    INVALID_ACTIVATION_POINT = "InvalidActivationPoint"
    INVALID_COLLECT_FEE_MODE = "InvalidCollectFeeMode"
    INVALID_CONFIG_TYPE = "InvalidConfigType"
    IDENTICAL_TOKEN_MINT = "IdenticalTokenMint"
    EXCEEDED_SLIPPAGE = "ExceededSlippage"
    INVALID_AMOUNT = "InvalidAmount"

    # State mismatch
    INSUFFICIENT_LIQUIDITY = "InsufficientLiquidity"
    REWARD_INITIALIZED = "RewardInitialized"
    REWARD_UNINITIALIZED = "RewardUninitialized"
    IDENTICAL_FUNDER = "IdenticalFunder"
    IDENTICAL_REWARD_DURATION = "IdenticalRewardDuration"
    REWARD_CAMPAIGN_IN_PROGRESS = "RewardCampaignInProgress"
    POOL_MISMATCH = "PoolMismatch"

    # Authorization
    UNAUTHORIZED = "Unauthorized"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class PoolError(Exception):
    """
    Базовая ошибка ядра.

    Attributes:
        code: Код отказа (PoolErrorCode)
        category: Категория (ErrorCategory)
    """

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, code: PoolErrorCode, message: str = ""):
        self.code = code
        super().__init__(f"{code.value}: {message}" if message else code.value)


class InvalidParameterError(PoolError):
    """Некорректный параметр от вызывающего"""

    category = ErrorCategory.VALIDATION


class StateMismatchError(PoolError):
    """Операция невалидна для текущего состояния сущности"""

    category = ErrorCategory.STATE_MISMATCH


class UnauthorizedError(PoolError):
    """У вызывающего нет требуемой роли"""

    category = ErrorCategory.AUTHORIZATION

    def __init__(self, message: str = ""):
        super().__init__(PoolErrorCode.UNAUTHORIZED, message)


class MathError(PoolError):
    """Переполнение, деление на ноль или невалидное приведение"""

    category = ErrorCategory.ARITHMETIC


class TransferError(Exception):
    """
    Отказ коллаборатора перевода активов.

    Поднимается реализацией CustodyTransfer и пропагирует из движка без изменений.
    """

    pass

"""cp-amm — движок учёта concentrated constant-product пулов.

Fixed-point математика, кривая ликвидности, состояние пула и позиций,
reward-кампании и оркестрация операций поверх внешних коллабораторов.
"""

__version__ = "0.1.0"

"""
Test suite for cp-amm

Contains:
- tests/unit/          : Unit tests for math, domain models, rewards and the engine
"""

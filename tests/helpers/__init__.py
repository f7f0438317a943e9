"""Test helper utilities for recipe aggregator tests."""

from .fakes import (
    FakeCapability,
    FakeClock,
    FakeConnector,
    ai_record,
    blocking,
    meal_record,
    user_record,
)

__all__ = [
    "FakeCapability",
    "FakeClock",
    "FakeConnector",
    "ai_record",
    "blocking",
    "meal_record",
    "user_record",
]

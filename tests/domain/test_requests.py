"""Tests for request base models and request keys."""

from __future__ import annotations

from typing import ClassVar

import pytest
from pydantic import ValidationError

from relaykit.domain.requests import CacheableQuery, Command, Query, request_key


class PlaceOrder(Command):
    request_tag: ClassVar[str] = "orders.place"

    customer_id: int
    total: float


class ListOrders(Query):
    customer_id: int


class OrderSummary(CacheableQuery):
    request_tag: ClassVar[str] = "orders.summary"

    customer_id: int
    year: int = 2024


class TestRequestKey:
    def test_tag_wins(self) -> None:
        assert request_key(PlaceOrder) == "orders.place"

    def test_qualified_name_fallback(self) -> None:
        assert request_key(ListOrders) == f"{__name__}.ListOrders"

    def test_string_passthrough(self) -> None:
        assert request_key("orders.place") == "orders.place"

    def test_plain_class(self) -> None:
        class Plain:
            pass

        assert request_key(Plain).endswith("TestRequestKey.test_plain_class.<locals>.Plain")


class TestRequestModels:
    def test_frozen(self) -> None:
        cmd = PlaceOrder(customer_id=7, total=100)
        with pytest.raises(ValidationError):
            cmd.total = 5  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            PlaceOrder(customer_id=7, total=1, coupon="X")  # type: ignore[call-arg]

    def test_tag_not_a_field(self) -> None:
        assert "request_tag" not in PlaceOrder.model_fields

    def test_cache_key_includes_fields(self) -> None:
        key = OrderSummary(customer_id=7).cache_key()
        assert key == "orders.summary(customer_id=7,year=2024)"

    def test_cache_key_differs_by_value(self) -> None:
        assert OrderSummary(customer_id=7).cache_key() != OrderSummary(customer_id=8).cache_key()

"""Tests for sf_common.enums — values must match DB CHECK constraints."""

from src.sf_common.enums import (
    ChangeEventType,
    ChangeTable,
    DeliveryProviderType,
    DocumentKind,
    OrderStatus,
    RiskLevel,
)


class TestAllEnumsAreStr:
    def test_order_status_is_str(self) -> None:
        assert isinstance(OrderStatus.SHIPPED, str)
        assert OrderStatus.SHIPPED == "shipped"

    def test_document_kind_is_str(self) -> None:
        assert DocumentKind.DELIVERY_SLIP == "delivery_slip"

    def test_risk_level_is_str(self) -> None:
        assert RiskLevel.HIGH == "high"


class TestOrderStatus:
    def test_six_statuses(self) -> None:
        assert [s.value for s in OrderStatus] == [
            "pending", "confirmed", "processing", "shipped", "delivered", "cancelled",
        ]

    def test_lookup_by_value(self) -> None:
        assert OrderStatus("cancelled") is OrderStatus.CANCELLED


class TestChangeFeedEnums:
    def test_event_types_match_tg_op(self) -> None:
        assert {e.value for e in ChangeEventType} == {"INSERT", "UPDATE", "DELETE"}

    def test_watched_tables(self) -> None:
        assert {t.value for t in ChangeTable} == {"orders", "order_items"}


class TestDeliveryProviderType:
    def test_supported_couriers(self) -> None:
        assert len(DeliveryProviderType) == 6
        assert DeliveryProviderType("steadfast") is DeliveryProviderType.STEADFAST

"""Tests for the pure lifecycle checks: payment, staff transitions, OTPs."""
from datetime import UTC, datetime

import pytest

from src.ps_common.enums import OrderStatus, PaymentStatus, UserRole
from src.ps_common.errors import (
    ForbiddenError,
    InvalidOrderError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from src.ps_order.domain.lifecycle import (
    OTP_PATTERN,
    check_payment,
    check_status_change,
    generate_otp,
    new_order_row,
)
from src.ps_order.domain.models import OrderFile
from order_factories import ORDER_ID, OTHER_STUDENT_ID, STUDENT_ID, make_order, make_paid


class TestGenerateOtp:
    def test_six_digits_without_leading_zero(self) -> None:
        for _ in range(200):
            otp = generate_otp()
            assert OTP_PATTERN.match(otp)
            assert 100000 <= int(otp) <= 999999


class TestNewOrderRow:
    def test_starts_pending(self) -> None:
        now = datetime(2024, 3, 10, tzinfo=UTC)
        row = new_order_row(
            user_id=STUDENT_ID,
            files=[OrderFile(name="a.pdf", url="u")],
            paper_size="Glossy Print",
            copies=2,
            is_color_print=True,
            is_double_sided=False,
            notes="",
            now=now,
        )
        assert row["status"] == "PENDING_PAYMENT"
        assert row["payment_status"] == "pending"
        assert row["files"] == [{"name": "a.pdf", "url": "u"}]
        assert row["notes"] is None
        assert row["created_at"] == now
        assert "otp" not in row

    def test_requires_a_file(self) -> None:
        with pytest.raises(InvalidOrderError):
            new_order_row(STUDENT_ID, [], "Normal Xerox", 1, False, False, None, datetime.now(UTC))

    def test_requires_positive_copies(self) -> None:
        with pytest.raises(InvalidOrderError):
            new_order_row(
                STUDENT_ID, [OrderFile("a.pdf", "u")], "Normal Xerox", 0, False, False, None,
                datetime.now(UTC),
            )


class TestCheckPayment:
    def test_owner_may_pay_pending_order(self) -> None:
        check_payment(make_order(), ORDER_ID, STUDENT_ID)

    def test_missing_order(self) -> None:
        with pytest.raises(OrderNotFoundError) as exc_info:
            check_payment(None, ORDER_ID, STUDENT_ID)
        assert exc_info.value.http_status == 404
        assert isinstance(exc_info.value, InvalidTransitionError)

    def test_other_user_is_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_payment(make_order(), ORDER_ID, OTHER_STUDENT_ID)

    def test_already_paid(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_payment(make_paid(), ORDER_ID, STUDENT_ID)

    def test_unknown_status_cannot_be_paid(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_payment(make_order(status="On hold"), ORDER_ID, STUDENT_ID)


class TestCheckStatusChange:
    @pytest.mark.parametrize(
        "target",
        [OrderStatus.READY_TO_PRINT, OrderStatus.PRINTING, OrderStatus.COMPLETED, OrderStatus.DELIVERED],
    )
    def test_staff_may_move_paid_order_forward(self, target: OrderStatus) -> None:
        check_status_change(make_paid(), ORDER_ID, UserRole.XEROX, target)

    def test_admin_counts_as_staff(self) -> None:
        check_status_change(make_paid(), ORDER_ID, UserRole.ADMIN, OrderStatus.PRINTING)

    def test_student_is_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_status_change(make_paid(), ORDER_ID, UserRole.STUDENT, OrderStatus.PRINTING)

    def test_missing_order(self) -> None:
        with pytest.raises(OrderNotFoundError):
            check_status_change(None, ORDER_ID, UserRole.XEROX, OrderStatus.PRINTING)

    def test_unpaid_order_rejected(self) -> None:
        with pytest.raises(InvalidTransitionError, match="not been paid"):
            check_status_change(make_order(), ORDER_ID, UserRole.XEROX, OrderStatus.PRINTING)

    def test_staff_cannot_set_payment_states(self) -> None:
        for target in (OrderStatus.PENDING_PAYMENT, OrderStatus.PAID):
            with pytest.raises(InvalidTransitionError):
                check_status_change(make_paid(status=OrderStatus.PRINTING), ORDER_ID, UserRole.XEROX, target)

    def test_delivered_is_final(self) -> None:
        order = make_paid(status=OrderStatus.DELIVERED)
        with pytest.raises(InvalidTransitionError, match="delivered"):
            check_status_change(order, ORDER_ID, UserRole.XEROX, OrderStatus.PRINTING)

    def test_completed_only_moves_to_delivered(self) -> None:
        order = make_paid(status=OrderStatus.COMPLETED)
        check_status_change(order, ORDER_ID, UserRole.XEROX, OrderStatus.DELIVERED)
        with pytest.raises(InvalidTransitionError):
            check_status_change(order, ORDER_ID, UserRole.XEROX, OrderStatus.PRINTING)

    def test_unknown_label_accepts_nothing(self) -> None:
        order = make_order(status="On hold", payment_status=PaymentStatus.PAID)
        with pytest.raises(InvalidTransitionError, match="unrecognized"):
            check_status_change(order, ORDER_ID, UserRole.XEROX, OrderStatus.DELIVERED)

    def test_same_status_rejected(self) -> None:
        order = make_paid(status=OrderStatus.PRINTING)
        with pytest.raises(InvalidTransitionError, match="already"):
            check_status_change(order, ORDER_ID, UserRole.XEROX, OrderStatus.PRINTING)

# common/tests/test_errors.py

from decimal import Decimal

from django.test import TestCase

from common.advisory import advisory
from common.api import service_exception_handler
from common.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from common.money import earned_points, money, percent_of, to_int_qty
from pharmacies.models import Pharmacy


class ExceptionHandlerTests(TestCase):
    def test_status_mapping(self):
        cases = [
            (ValidationError("bad"), 400, "VALIDATION_ERROR"),
            (ForbiddenError("nope"), 403, "FORBIDDEN"),
            (NotFoundError("order"), 404, "NOT_FOUND"),
            (ConflictError("dup"), 409, "CONFLICT"),
            (InternalError("boom"), 500, "INTERNAL_ERROR"),
        ]
        for exc, expected_status, expected_code in cases:
            with self.subTest(code=expected_code):
                response = service_exception_handler(exc, {})
                self.assertEqual(response.status_code, expected_status)
                self.assertEqual(response.data["code"], expected_code)

    def test_not_found_message(self):
        response = service_exception_handler(NotFoundError("promo code"), {})
        self.assertEqual(response.data["detail"], "promo code not found")


class AdvisoryTests(TestCase):
    """
    GUARANTEES:
    - A failing block never raises
    - Its writes are rolled back, the caller's writes are kept
    """

    def test_failure_is_logged_not_raised(self):
        kept = Pharmacy.objects.create(name="Kept")

        with self.assertLogs("advisory", level="WARNING") as logs:
            with advisory("test_operation", pharmacy_id=str(kept.id)):
                Pharmacy.objects.create(name="Rolled back")
                raise RuntimeError("boom")

        self.assertIn("Advisory operation failed", logs.output[0])
        self.assertTrue(Pharmacy.objects.filter(name="Kept").exists())
        self.assertFalse(Pharmacy.objects.filter(name="Rolled back").exists())

    def test_success_commits(self):
        with advisory("test_operation"):
            Pharmacy.objects.create(name="Saved")
        self.assertTrue(Pharmacy.objects.filter(name="Saved").exists())


class MoneyTests(TestCase):
    def test_money_rounds_half_up(self):
        self.assertEqual(money("2.345"), Decimal("2.35"))
        self.assertEqual(money(None), Decimal("0.00"))
        with self.assertRaises(ValidationError):
            money("abc")

    def test_whole_quantities(self):
        self.assertEqual(to_int_qty("3"), 3)
        with self.assertRaises(ValidationError):
            to_int_qty("1.5")
        with self.assertRaises(ValidationError):
            to_int_qty(True)

    def test_percent_and_points(self):
        self.assertEqual(percent_of("200", Decimal("12.5")), Decimal("25.00"))
        self.assertEqual(earned_points("149.99", currency_unit="10", points_per_unit="1"), 14)
        self.assertEqual(earned_points("100", currency_unit="0", points_per_unit="1"), 0)

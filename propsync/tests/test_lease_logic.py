import unittest
import sys
import os
from datetime import date, datetime

from freezegun import freeze_time

# Add the project root directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from propsync.exceptions import ValidationError
from propsync.logic.lease_logic import (
    build_assignment,
    classify,
    compute_lease_end,
    default_renewal_end,
    find_leases_expiring_soon,
    find_leases_to_expire,
    merge_lease_edit,
    renew,
)
from propsync.logic.space_logic import resolve_space
from propsync.tests.constants import building_property, rent_records


class TestComputeLeaseEnd(unittest.TestCase):

    def test_yearly_adds_years_then_remaining_months(self):
        self.assertEqual(compute_lease_end("2025-01-01", "yearly", 14), date(2026, 3, 1))
        self.assertEqual(compute_lease_end(date(2025, 1, 1), "yearly", 12), date(2026, 1, 1))

    def test_monthly(self):
        self.assertEqual(compute_lease_end("2025-03-15", "monthly", 6), date(2025, 9, 15))

    def test_month_overflow_clamps_to_month_end(self):
        self.assertEqual(compute_lease_end("2025-01-31", "monthly", 1), date(2025, 2, 28))
        self.assertEqual(compute_lease_end("2024-01-31", "monthly", 1), date(2024, 2, 29))
        self.assertEqual(compute_lease_end("2024-02-29", "yearly", 12), date(2025, 2, 28))

    def test_custom_uses_given_end(self):
        self.assertEqual(compute_lease_end("2025-01-01", "custom", 99, custom_end="2025-07-04"), date(2025, 7, 4))
        self.assertIsNone(compute_lease_end("2025-01-01", "custom"))

    def test_invalid_input(self):
        with self.assertRaises(ValidationError):
            compute_lease_end("2025-01-01", "weekly", 1)
        with self.assertRaises(ValidationError):
            compute_lease_end(None, "monthly", 1)
        with self.assertRaises(ValidationError):
            compute_lease_end("2025-01-01", "monthly", -1)
        with self.assertRaises(ValidationError):
            compute_lease_end("2025-01-01", "monthly", "twelve")


class TestClassify(unittest.TestCase):

    def test_expiring_soon(self):
        status = classify("2025-06-01", "2025-06-20")
        self.assertTrue(status.is_expiring_soon)
        self.assertFalse(status.is_expired)
        self.assertEqual(status.days_until_expiry, 19)
        self.assertEqual(status.label, "Expiring Soon")

    def test_open_ended(self):
        status = classify("2025-06-01", None)
        self.assertFalse(status.is_expired)
        self.assertFalse(status.is_expiring_soon)
        self.assertIsNone(status.days_until_expiry)

    def test_boundaries(self):
        self.assertFalse(classify("2025-06-01", "2025-06-01").is_expiring_soon)
        self.assertFalse(classify("2025-06-01", "2025-06-01").is_expired)
        self.assertTrue(classify("2025-06-01", "2025-07-01").is_expiring_soon)
        self.assertFalse(classify("2025-06-01", "2025-07-02").is_expiring_soon)
        self.assertTrue(classify("2025-06-01", "2025-05-31").is_expired)

    def test_accepts_timestamps(self):
        status = classify(date(2025, 6, 1), datetime(2025, 6, 11, 23, 59))
        self.assertEqual(status.days_until_expiry, 10)


class TestRenew(unittest.TestCase):

    @freeze_time("2025-06-01")
    def test_past_end_date_fails(self):
        with self.assertRaises(ValidationError) as ctx:
            renew(rent_records()[0], "2024-01-01")
        self.assertEqual(ctx.exception.field, "leaseEnd")

    @freeze_time("2025-06-01")
    def test_today_is_not_strictly_future(self):
        with self.assertRaises(ValidationError):
            renew(rent_records()[0], "2025-06-01")

    @freeze_time("2025-06-01")
    def test_reactivates_and_coerces(self):
        record = rent_records()[2]
        record.update({"status": "expired", "deposit": "200000", "paymentDueDate": "5", "phone": "0772000111"})
        patch = renew(record, "2026-05-31")
        self.assertEqual(patch["status"], "active")
        self.assertEqual(patch["leaseEnd"], "2026-05-31")
        self.assertEqual(patch["leaseStart"], "2024-06-01")
        self.assertEqual(patch["monthlyRent"], 100000)
        self.assertEqual(patch["baseRent"], 100000)
        self.assertEqual(patch["deposit"], 200000)
        self.assertEqual(patch["paymentDueDate"], 5)
        self.assertEqual(patch["leaseDurationMonths"], 12)
        self.assertEqual(patch["tenantPhone"], "0772000111")
        self.assertEqual(patch["agreementType"], "standard")

    def test_default_renewal_end(self):
        self.assertEqual(default_renewal_end({"leaseEnd": "2025-03-31"}, today="2025-06-01"), date(2026, 3, 31))
        self.assertEqual(default_renewal_end({"leaseEnd": "2025-12-31"}, today="2025-06-01"), date(2026, 6, 1))


class TestMergeLeaseEdit(unittest.TestCase):

    def test_partial_edit_keeps_amounts(self):
        merged = merge_lease_edit(rent_records()[0], {"notes": "Repainted", "leaseDuration": "24"})
        self.assertEqual(merged["monthlyRent"], 450000)
        self.assertEqual(merged["leaseDurationMonths"], 24)
        self.assertNotIn("leaseDuration", merged)
        self.assertEqual(merged["notes"], "Repainted")

    def test_rejects_end_before_start(self):
        with self.assertRaises(ValidationError):
            merge_lease_edit(rent_records()[0], {"leaseEnd": "2024-12-31"})

    def test_rejects_bad_due_day(self):
        with self.assertRaises(ValidationError):
            merge_lease_edit(rent_records()[0], {"paymentDueDate": 40})

    def test_explicit_zero_is_rejected_not_defaulted(self):
        with self.assertRaises(ValidationError) as ctx:
            merge_lease_edit(rent_records()[0], {"paymentDueDate": 0})
        self.assertEqual(ctx.exception.field, "paymentDueDate")
        with self.assertRaises(ValidationError) as ctx:
            merge_lease_edit(rent_records()[0], {"leaseDuration": "0"})
        self.assertEqual(ctx.exception.field, "leaseDurationMonths")
        with self.assertRaises(ValidationError):
            merge_lease_edit(rent_records()[0], {"leaseDurationMonths": 0})


class TestBuildAssignment(unittest.TestCase):

    def setUp(self):
        self.space_ref = resolve_space(building_property(), "space-g2")
        self.form = {
            "tenantName": "Achieng Ruth",
            "tenantPhone": "0700111222",
            "leaseStart": "2025-07-01",
            "leasePeriodType": "monthly",
            "leaseDuration": 6,
            "monthlyRent": "350000",
            "includeUtilities": True,
            "utilitiesAmount": 50000,
        }

    def test_builds_rent_record(self):
        data = build_assignment("prop-plaza", self.space_ref, self.form)
        self.assertEqual(data["spaceId"], "space-g2")
        self.assertEqual(data["spaceName"], "Shop G2")
        self.assertEqual(data["monthlyRent"], 400000)
        self.assertEqual(data["baseRent"], 350000)
        self.assertEqual(data["leaseEnd"], "2026-01-01")
        self.assertEqual(data["paymentDueDate"], 1)
        self.assertEqual(data["status"], "active")

    def test_already_assigned_space(self):
        with self.assertRaises(ValidationError):
            build_assignment("prop-plaza", self.space_ref, self.form, ["space-g2"])

    def test_space_must_be_vacant(self):
        self.space_ref.space["status"] = "maintenance"
        with self.assertRaises(ValidationError) as ctx:
            build_assignment("prop-plaza", self.space_ref, self.form)
        self.assertEqual(ctx.exception.field, "status")

        del self.space_ref.space["status"]
        self.assertEqual(build_assignment("prop-plaza", self.space_ref, self.form)["spaceId"], "space-g2")

    def test_missing_required_field(self):
        del self.form["tenantPhone"]
        with self.assertRaises(ValidationError) as ctx:
            build_assignment("prop-plaza", self.space_ref, self.form)
        self.assertEqual(ctx.exception.field, "tenantPhone")


class TestExpirySweep(unittest.TestCase):

    def test_to_expire_and_expiring_soon(self):
        records = rent_records()
        records.append({"id": "rent-open", "status": "active", "leaseEnd": None})
        records.append({"id": "rent-old", "status": "terminated", "leaseEnd": "2020-01-01"})
        today = date(2025, 12, 15)
        self.assertEqual([r["id"] for r in find_leases_to_expire(records, today)], ["rent-3"])
        soon = find_leases_expiring_soon(records, today)
        self.assertEqual([(r["id"], s.days_until_expiry) for r, s in soon], [("rent-1", 16)])
        self.assertEqual(find_leases_expiring_soon(records, today, window_days=10), [])

    def test_unreadable_end_date_is_skipped(self):
        records = [{"id": "rent-bad", "status": "active", "leaseEnd": "not a date"}]
        self.assertEqual(find_leases_to_expire(records, date(2025, 1, 1)), [])


if __name__ == '__main__':
    unittest.main()

import unittest
import sys
import os

# Add the project root directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from propsync.logic.rent_sync_logic import (
    SKIP_DUPLICATE_SPACE,
    SKIP_INVALID_SPACE_RENT,
    SKIP_NO_PROPERTY,
    SKIP_NO_SPACE,
    SKIP_NO_SPACE_ID,
    SKIP_NO_SPACE_RENT,
    plan_rent_sync,
    rents_differ,
)
from propsync.tests.constants import building_property, land_property, rent_records


def _properties():
    return {"prop-plaza": building_property(), "prop-land": land_property()}


class TestRentsDiffer(unittest.TestCase):

    def test_epsilon(self):
        self.assertFalse(rents_differ(500000, 500000))
        self.assertFalse(rents_differ(100.0, 100.005))
        self.assertTrue(rents_differ(100.0, 100.02))
        self.assertTrue(rents_differ(500000, 450000))

    def test_missing_stored_rent_counts_as_zero(self):
        self.assertTrue(rents_differ(1000, None))
        self.assertFalse(rents_differ(0, None))


class TestPlanRentSync(unittest.TestCase):

    def test_space_rent_scenario_then_idempotent(self):
        records = rent_records()
        report = plan_rent_sync(records, _properties())

        updated = {u.rent_id: u for u in report.updated}
        self.assertIn("rent-1", updated)
        self.assertEqual(updated["rent-1"].patch, {"monthlyRent": 500000, "baseRent": 500000})
        self.assertEqual(updated["rent-1"].old_rent, 450000)
        self.assertEqual(updated["rent-1"].space_name, "Shop G1")
        self.assertEqual(updated["rent-1"].property_name, "Nakasero Plaza")
        self.assertIn("rent-2", report.unchanged)

        # Land squatter payment stored as a string
        self.assertEqual(updated["rent-3"].new_rent, 120000)

        # Apply the patches and run again: nothing left to write
        for record in records:
            if record["id"] in updated:
                record.update(updated[record["id"]].patch)
        second = plan_rent_sync(records, _properties())
        self.assertEqual(second.updated, [])
        self.assertEqual(sorted(second.unchanged), ["rent-1", "rent-2", "rent-3"])

    def test_skip_reasons(self):
        records = [
            {"id": "r-no-space", "propertyId": "prop-plaza", "status": "active"},
            {"id": "r-no-prop", "propertyId": "prop-gone", "spaceId": "x", "status": "active"},
            {"id": "r-deleted-space", "propertyId": "prop-plaza", "spaceId": "space-999", "status": "active"},
            {"id": "r-no-rent", "propertyId": "prop-plaza", "spaceId": "space-102", "status": "active"},
        ]
        report = plan_rent_sync(records, _properties())
        reasons = {s["rent_id"]: s["reason"] for s in report.skipped}
        self.assertEqual(reasons, {
            "r-no-space": SKIP_NO_SPACE_ID,
            "r-no-prop": SKIP_NO_PROPERTY,
            "r-deleted-space": SKIP_NO_SPACE,
            "r-no-rent": SKIP_NO_SPACE_RENT,
        })
        self.assertEqual(report.summary(), {"total": 4, "updated": 0, "unchanged": 0, "skipped": 4, "errors": 0})

    def test_duplicate_space_id_is_skipped(self):
        prop = building_property()
        prop["buildingDetails"]["floors"][1]["spaces"][1]["spaceId"] = "space-g1"
        report = plan_rent_sync([rent_records()[0]], {"prop-plaza": prop})
        self.assertEqual(report.skipped, [{"rent_id": "rent-1", "reason": SKIP_DUPLICATE_SPACE}])
        self.assertEqual(report.updated, [])
        self.assertEqual(report.duplicate_space_ids, {"prop-plaza": {"space-g1": 2}})

    def test_non_numeric_space_rent_is_skipped_and_others_continue(self):
        prop = building_property()
        prop["buildingDetails"]["floors"][0]["spaces"][0]["monthlyRent"] = ""
        report = plan_rent_sync(rent_records(), {"prop-plaza": prop, "prop-land": land_property()})
        self.assertEqual(report.skipped, [{"rent_id": "rent-1", "reason": SKIP_INVALID_SPACE_RENT, "value": ""}])
        self.assertEqual([u.rent_id for u in report.updated], ["rent-3"])
        self.assertIn("rent-2", report.unchanged)

    def test_string_space_rent_is_written_as_a_number(self):
        prop = building_property()
        prop["buildingDetails"]["floors"][0]["spaces"][0]["monthlyRent"] = "500000"
        report = plan_rent_sync([rent_records()[0]], {"prop-plaza": prop})
        patch = report.updated[0].patch
        self.assertEqual(patch, {"monthlyRent": 500000, "baseRent": 500000})
        self.assertIsInstance(patch["monthlyRent"], int)

    def test_property_fetch_error_is_reported_and_others_continue(self):
        records = rent_records()
        report = plan_rent_sync(records, {"prop-land": land_property()}, {"prop-plaza": "deadline exceeded"})
        self.assertEqual(sorted(e["rent_id"] for e in report.errors), ["rent-1", "rent-2"])
        self.assertEqual([u.rent_id for u in report.updated], ["rent-3"])


if __name__ == '__main__':
    unittest.main()

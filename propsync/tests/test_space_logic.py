import unittest
import sys
import os

# Add the project root directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from propsync.exceptions import DuplicateSpaceIdError, ValidationError
from propsync.logic.space_logic import (
    build_space_patch,
    find_duplicate_space_ids,
    id_of,
    iter_spaces,
    name_of,
    rent_of,
    resolve_space,
    space_at,
)
from propsync.tests.constants import building_property, land_property


class TestSpaceAccessors(unittest.TestCase):

    def test_building_space_fields(self):
        ref = resolve_space(building_property(), "space-101")
        self.assertEqual(ref.kind, "building")
        self.assertEqual(ref.floor_index, 1)
        self.assertEqual(ref.space_index, 0)
        self.assertEqual(id_of(ref), "space-101")
        self.assertEqual(name_of(ref), "Office 101")
        self.assertEqual(rent_of(ref), 800000)

    def test_land_squatter_fields(self):
        ref = resolve_space(land_property(), "sq-2")
        self.assertEqual(ref.kind, "land")
        self.assertIsNone(ref.floor_index)
        self.assertEqual(ref.space_index, 1)
        self.assertEqual(name_of(ref), "Road frontage")
        self.assertEqual(rent_of(ref), 90000)

    def test_iter_spaces_in_array_order(self):
        ids = [id_of(ref) for ref in iter_spaces(building_property())]
        self.assertEqual(ids, ["space-g1", "space-g2", "space-101", "space-102"])

    def test_iter_spaces_unknown_type_yields_nothing(self):
        self.assertEqual(list(iter_spaces({"type": "parking"})), [])
        self.assertEqual(list(iter_spaces(None)), [])


class TestResolveSpace(unittest.TestCase):

    def test_missing_space_returns_none(self):
        self.assertIsNone(resolve_space(building_property(), "space-999"))

    def test_missing_property_or_id_returns_none(self):
        self.assertIsNone(resolve_space(None, "space-g1"))
        self.assertIsNone(resolve_space(building_property(), None))

    def test_duplicate_space_id_raises(self):
        prop = building_property()
        prop["buildingDetails"]["floors"][1]["spaces"][1]["spaceId"] = "space-g1"
        self.assertEqual(find_duplicate_space_ids(prop), {"space-g1": 2})
        with self.assertRaises(DuplicateSpaceIdError) as ctx:
            resolve_space(prop, "space-g1")
        self.assertEqual(ctx.exception.occurrences, 2)
        self.assertEqual(ctx.exception.property_id, "prop-plaza")

    def test_space_at(self):
        self.assertEqual(id_of(space_at(building_property(), 0, 1)), "space-g2")
        self.assertIsNone(space_at(building_property(), 3, 0))


class TestBuildSpacePatch(unittest.TestCase):

    def test_building_patch_rewrites_only_floors(self):
        prop = building_property()
        update = build_space_patch(prop, 1, 1, {"monthlyRent": 600000})
        self.assertEqual(list(update.keys()), ["buildingDetails.floors"])
        floors = update["buildingDetails.floors"]
        self.assertEqual(floors[1]["spaces"][1]["monthlyRent"], 600000)
        self.assertEqual(floors[1]["spaces"][1]["spaceName"], "Office 102")
        self.assertEqual(floors[0], prop["buildingDetails"]["floors"][0])
        # The input document is left untouched
        self.assertNotIn("monthlyRent", prop["buildingDetails"]["floors"][1]["spaces"][1])

    def test_land_patch(self):
        update = build_space_patch(land_property(), None, 0, {"monthlyPayment": 130000})
        self.assertEqual(update["landDetails.squatters"][0]["monthlyPayment"], 130000)
        self.assertEqual(update["landDetails.squatters"][1]["monthlyPayment"], 90000)

    def test_invalid_patches(self):
        with self.assertRaises(ValidationError):
            build_space_patch(building_property(), 0, 0, {})
        with self.assertRaises(ValidationError):
            build_space_patch(building_property(), None, 0, {"status": "vacant"})
        with self.assertRaises(ValidationError):
            build_space_patch(building_property(), 5, 0, {"status": "vacant"})
        with self.assertRaises(ValidationError):
            build_space_patch(land_property(), None, 9, {"status": "vacant"})
        with self.assertRaises(ValidationError):
            build_space_patch({"type": "parking"}, None, 0, {"status": "vacant"})


if __name__ == '__main__':
    unittest.main()

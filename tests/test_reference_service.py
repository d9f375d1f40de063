import unittest

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from asset_ledger.database.base import Base
from asset_ledger.models import AssetBrand, User, import_all_models
from asset_ledger.services import reference_service
from asset_ledger.services.reference_service import (
    _insert_ignoring_duplicates,
    person_username,
    resolve,
)


class ReferenceServiceTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        self.db = sessionmaker(bind=engine)()

    def tearDown(self):
        self.db.close()

    def test_resolve_twice_returns_same_id(self):
        first = resolve(self.db, "brand", "Dell")
        second = resolve(self.db, "brand", "Dell")
        self.assertIsNotNone(first)
        self.assertEqual(first, second)
        count = self.db.execute(select(func.count()).select_from(AssetBrand)).scalar_one()
        self.assertEqual(count, 1)

    def test_named_lookup_is_case_sensitive(self):
        self.assertNotEqual(
            resolve(self.db, "type", "Laptop"),
            resolve(self.db, "type", "laptop"),
        )

    def test_blank_value_resolves_to_none(self):
        self.assertIsNone(resolve(self.db, "type", None))
        self.assertIsNone(resolve(self.db, "brand", "   "))

    def test_unknown_kind_rejected(self):
        with self.assertRaises(ValueError):
            resolve(self.db, "colour", "Red")

    def test_person_row_is_created_from_slug(self):
        person_id = resolve(self.db, "person", "Ravi Kumar")
        user = self.db.get(User, person_id)
        self.assertEqual(user.username, "ravi_kumar")
        self.assertEqual(user.full_name, "Ravi Kumar")
        self.assertEqual(user.email, "ravi_kumar@example.com")
        self.assertEqual(user.role, "staff")

    def test_person_matches_slug_then_email(self):
        person_id = resolve(self.db, "person", "Ravi Kumar")
        self.assertEqual(resolve(self.db, "person", "ravi kumar"), person_id)
        self.assertEqual(resolve(self.db, "person", "ravi_kumar@example.com"), person_id)

    def test_person_username(self):
        self.assertEqual(person_username("Admin User"), "admin_user")
        self.assertEqual(person_username("  José  Núñez "), "jose_nunez")

    def test_duplicate_insert_is_ignored(self):
        _insert_ignoring_duplicates(self.db, AssetBrand, {"brand_name": "Cisco"})
        _insert_ignoring_duplicates(self.db, AssetBrand, {"brand_name": "Cisco"})
        count = self.db.execute(
            select(func.count()).select_from(AssetBrand).where(AssetBrand.brand_name == "Cisco")
        ).scalar_one()
        self.assertEqual(count, 1)

    def test_list_references(self):
        resolve(self.db, "type", "Router")
        resolve(self.db, "type", "Laptop")
        names = [row["type_name"] for row in reference_service.list_references(self.db, "type")]
        self.assertEqual(names, ["Laptop", "Router"])


if __name__ == "__main__":
    unittest.main()

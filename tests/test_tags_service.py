"""Tests for app.services.tags: name checks and usage counting."""

import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import BadRequestError
from app.models import Base, User, UserTag
from app.services.tags import (
    create_default_tags,
    create_tag,
    normalize_tag_list,
    record_tag_usage,
    update_tag,
)


class TagServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        self.db = sessionmaker(bind=engine, autoflush=False)()
        user = User(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            password_hash="x",
        )
        self.db.add(user)
        self.db.commit()
        self.user_id = user.id
        create_default_tags(self.db, self.user_id)
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def usage(self, name: str) -> int:
        tag = (
            self.db.query(UserTag)
            .filter(UserTag.user_id == self.user_id, UserTag.name == name)
            .one()
        )
        self.db.refresh(tag)
        return tag.usage_count


class TestTagNames(TagServiceTestCase):
    def test_blank_name_is_rejected(self) -> None:
        with self.assertRaises(BadRequestError):
            create_tag(self.db, self.user_id, "   ")

    def test_blank_rename_is_rejected(self) -> None:
        tag = create_tag(self.db, self.user_id, "solana")
        with self.assertRaises(BadRequestError):
            update_tag(self.db, self.user_id, tag.id, name="\t")

    def test_normalize_tag_list(self) -> None:
        self.assertEqual(normalize_tag_list([" DeFi", "defi", "", "  ", "NFT"]), ["defi", "nft"])
        self.assertEqual(normalize_tag_list(None), [])


class TestRecordTagUsage(TagServiceTestCase):
    def test_added_and_removed(self) -> None:
        record_tag_usage(self.db, self.user_id, added=["DeFi", "nft"])
        self.db.commit()
        self.assertEqual((self.usage("defi"), self.usage("nft")), (1, 1))

        record_tag_usage(self.db, self.user_id, removed=["nft"])
        self.db.commit()
        self.assertEqual((self.usage("defi"), self.usage("nft")), (1, 0))

    def test_never_goes_below_zero(self) -> None:
        record_tag_usage(self.db, self.user_id, removed=["gaming"])
        self.db.commit()
        self.assertEqual(self.usage("gaming"), 0)

    def test_unknown_names_are_ignored(self) -> None:
        record_tag_usage(self.db, self.user_id, added=["not-a-tag"])
        self.db.commit()
        self.assertEqual(self.db.query(UserTag).filter(UserTag.name == "not-a-tag").count(), 0)


if __name__ == "__main__":
    unittest.main()

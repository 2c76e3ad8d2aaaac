"""
Unit tests for query fingerprints.
"""

import re
from datetime import datetime, timezone
from enum import Enum

from query_cache.fingerprint import canonical_form, canonicalize, fingerprint
from query_cache.query import Query


class Status(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class TestFingerprint:
    """Determinism and isolation of fingerprints."""

    def test_same_query_built_in_different_orders_matches(self):
        first = Query("blogs").where(_user="u1", status="published").select("title", "content").sort("-created_at").limit(5)
        second = Query("blogs").limit(5).select("content", "title").where(status="published").where({"_user": "u1"}).sort("-created_at")

        assert fingerprint(first.to_descriptor()) == fingerprint(second.to_descriptor())

    def test_nested_predicates_are_order_independent(self):
        first = Query("blogs").where(meta={"tags": {"$in": ["a", "b"]}, "views": {"$gt": 10}})
        second = Query("blogs").where(meta={"views": {"$gt": 10}, "tags": {"$in": ["a", "b"]}})

        assert fingerprint(first.to_descriptor()) == fingerprint(second.to_descriptor())

    def test_different_collections_never_collide(self):
        blogs = Query("blogs").where(_user="u1").to_descriptor()
        comments = Query("comments").where(_user="u1").to_descriptor()

        assert fingerprint(blogs) != fingerprint(comments)
        assert fingerprint(blogs).startswith("blogs:")
        assert fingerprint(comments).startswith("comments:")

    def test_different_predicates_differ(self):
        u1 = Query("blogs").where(_user="u1").to_descriptor()
        u2 = Query("blogs").where(_user="u2").to_descriptor()

        assert fingerprint(u1) != fingerprint(u2)

    def test_sort_key_order_is_significant(self):
        by_title_then_date = Query("blogs").sort("title", "-created_at").to_descriptor()
        by_date_then_title = Query("blogs").sort("-created_at", "title").to_descriptor()

        assert fingerprint(by_title_then_date) != fingerprint(by_date_then_title)

    def test_pagination_and_cardinality_are_part_of_the_key(self):
        base = fingerprint(Query("blogs").to_descriptor())

        assert fingerprint(Query("blogs").limit(10).to_descriptor()) != base
        assert fingerprint(Query("blogs").skip(10).to_descriptor()) != base
        assert fingerprint(Query("blogs", single=True).to_descriptor()) != base

    def test_record_model_is_not_part_of_the_key(self):
        class Other:
            pass

        assert fingerprint(Query("blogs").to_descriptor()) == fingerprint(Query("blogs", model=Other).to_descriptor())

    def test_fingerprint_format(self):
        value = fingerprint(Query("blogs").where(_user="u1").to_descriptor())

        assert re.fullmatch(r"blogs:[0-9a-f]{64}", value)


class TestCanonicalize:
    """Reduction of predicate values to stable JSON types."""

    def test_sets_are_sorted(self):
        assert canonicalize({"b", "a", "c"}) == ["a", "b", "c"]

    def test_lists_keep_their_order(self):
        assert canonicalize(("b", "a")) == ["b", "a"]

    def test_rich_scalars(self):
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert canonicalize(moment) == "2024-01-01T00:00:00+00:00"
        assert canonicalize(Status.PUBLISHED) == "published"
        assert canonicalize(b"\x01\xff") == "01ff"

    def test_enum_and_plain_value_share_a_fingerprint(self):
        with_enum = Query("blogs").where(status=Status.DRAFT).to_descriptor()
        with_str = Query("blogs").where(status="draft").to_descriptor()

        assert fingerprint(with_enum) == fingerprint(with_str)

    def test_non_string_keys_stay_distinct(self):
        int_key = Query("blogs").where(meta={1: "a"}).to_descriptor()
        str_key = Query("blogs").where(meta={"1": "a"}).to_descriptor()

        assert fingerprint(int_key) != fingerprint(str_key)
        assert canonicalize({1: "a", "1": "b"}) == {"$type": "map", "value": [["1", "b"], [1, "a"]]}

    def test_opaque_values_do_not_match_plain_strings(self):
        class ObjectId:
            def __init__(self, value):
                self.value = value

            def __str__(self):
                return self.value

        tagged = Query("blogs").where(_id=ObjectId("abc")).to_descriptor()
        plain = Query("blogs").where(_id="ObjectId:abc").to_descriptor()
        shaped = Query("blogs").where(_id={"$type": "ObjectId", "value": "abc"}).to_descriptor()

        assert canonicalize(ObjectId("abc")) == {"$type": "ObjectId", "value": "abc"}
        assert fingerprint(tagged) != fingerprint(plain)
        assert fingerprint(tagged) != fingerprint(shaped)

    def test_canonical_form_deduplicates_projection(self):
        descriptor = Query("blogs").select("title", "content", "title").to_descriptor()

        assert canonical_form(descriptor)["projection"] == ["content", "title"]

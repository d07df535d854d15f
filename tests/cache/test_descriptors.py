"""Tests for staffing.cache.descriptors — canonical cache keys."""

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import FilterCriteria
from staffing.cache.partitions import PartitionKey
from staffing.domain.models import OpportunityStatus


class TestCanonicalisation:
    def test_equivalent_filters_share_a_key(self):
        a = QueryDescriptor.for_partition("in-progress", FilterCriteria(client=" Acme ", grades=["SE", "JT"]))
        b = QueryDescriptor.for_partition(
            OpportunityStatus.IN_PROGRESS, FilterCriteria(client="ACME", grades=["JT", "SE"]),
        )
        assert a == b
        assert hash(a) == hash(b)
        assert a.key == b.key

    def test_usable_as_dict_key(self):
        cache = {QueryDescriptor.default("OnHold"): 1}
        assert cache[QueryDescriptor.default(PartitionKey.ON_HOLD)] == 1

    def test_different_partition_differs(self):
        assert QueryDescriptor.default("in-progress") != QueryDescriptor.default("on-hold")

    def test_key_layout(self):
        d = QueryDescriptor.for_partition(
            "completed", FilterCriteria(client="Acme", grades=["SM", "JT"], needs_hire="no", probability=(10, 90)),
        )
        assert d.key == ("opportunities", "list", "completed", "acme", ("JT", "SM"), "no", (10, 90))

    def test_default(self):
        d = QueryDescriptor.default("in-progress")
        assert d.is_default
        assert d.criteria == FilterCriteria()
        assert not QueryDescriptor.for_partition("in-progress", FilterCriteria(client="x")).is_default


class TestQueryParams:
    def test_from_query_params(self):
        d = QueryDescriptor.from_query_params("on-hold", {"grades": "SE", "needsHire": "yes"})
        assert d.partition is PartitionKey.ON_HOLD
        assert d.to_query_params() == {"status": "on-hold", "grades": "SE", "needsHire": "yes"}

    def test_str(self):
        assert str(QueryDescriptor.default("in-progress")) == "opportunities/in-progress"
        d = QueryDescriptor.for_partition("in-progress", FilterCriteria(client="acme"))
        assert str(d) == "opportunities/in-progress?client=acme"

    def test_with_partition(self):
        d = QueryDescriptor.for_partition("in-progress", FilterCriteria(client="acme"))
        moved = d.with_partition(PartitionKey.ON_HOLD)
        assert moved.partition is PartitionKey.ON_HOLD
        assert moved.criteria == d.criteria

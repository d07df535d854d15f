"""Tests for staffing.cache.filters — matches() and query-string parsing."""

import itertools

import pytest

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import (
    RULES,
    FilterCriteria,
    NeedsHire,
    filter_entities,
    matches,
    parse_grades,
    parse_needs_hire,
    parse_probability,
    sanitize_client,
)
from staffing.domain.models import Grade


@pytest.fixture
def acme(opportunity_factory, role_factory):
    return opportunity_factory(
        client_name="Acme Corp",
        probability=70,
        roles=(role_factory("r1", required_grade="SE", needs_hire=True),),
    )


class TestScenario:
    def test_acme_matches_then_probability_excludes(self, acme):
        criteria = FilterCriteria(client="acme", grades=["SE"], needs_hire="yes", probability=(0, 100))
        assert matches(acme, criteria) is True
        narrowed = FilterCriteria(client="acme", grades=["SE"], needs_hire="yes", probability=(80, 100))
        assert matches(acme, narrowed) is False


class TestRules:
    def test_client_is_case_insensitive_substring(self, acme):
        assert matches(acme, FilterCriteria(client="ME CO"))
        assert not matches(acme, FilterCriteria(client="globex"))

    @pytest.mark.parametrize("client", ["Straße", "STRASSE", "straße gmbh", "ÉCOLE"])
    def test_client_folding_survives_canonical_descriptor(self, opportunity_factory, client):
        for name in ("Straße GmbH", "École Lyon"):
            opp = opportunity_factory(client_name=name)
            criteria = FilterCriteria(client=client)
            canonical = QueryDescriptor.for_partition("in-progress", criteria).criteria
            assert matches(opp, criteria) == matches(opp, canonical)
        assert matches(opportunity_factory(client_name="Straße GmbH"), FilterCriteria(client="strasse"))

    def test_grades_or_semantics(self, acme):
        assert matches(acme, FilterCriteria(grades=[Grade.JT, Grade.SE]))
        assert not matches(acme, FilterCriteria(grades=[Grade.JT]))

    def test_grades_need_roles(self, opportunity_factory):
        assert not matches(opportunity_factory(roles=()), FilterCriteria(grades=["SE"]))

    def test_needs_hire_no_means_some_role_without_hire(self, opportunity_factory, role_factory):
        mixed = opportunity_factory(roles=(
            role_factory("r1", needs_hire=True),
            role_factory("r2", needs_hire=False),
        ))
        all_hiring = opportunity_factory(roles=(role_factory("r1", needs_hire=True),))
        no = FilterCriteria(needs_hire=NeedsHire.NO)
        assert matches(mixed, no)
        assert matches(mixed, FilterCriteria(needs_hire=NeedsHire.YES))
        assert not matches(all_hiring, no)

    def test_no_roles_matches_neither_yes_nor_no(self, opportunity_factory):
        empty = opportunity_factory(roles=())
        assert not matches(empty, FilterCriteria(needs_hire="yes"))
        assert not matches(empty, FilterCriteria(needs_hire="no"))
        assert matches(empty, FilterCriteria(needs_hire="all"))

    def test_probability_inclusive(self, opportunity_factory):
        assert matches(opportunity_factory(probability=20), FilterCriteria(probability=(20, 80)))
        assert matches(opportunity_factory(probability=80), FilterCriteria(probability=(20, 80)))
        assert not matches(opportunity_factory(probability=81), FilterCriteria(probability=(20, 80)))


class TestLaws:
    @pytest.fixture
    def entities(self, opportunity_factory, role_factory):
        return [
            opportunity_factory("a", roles=()),
            opportunity_factory("b", client_name="Globex", probability=0,
                                roles=(role_factory("r1", required_grade="JT"),)),
            opportunity_factory("c", probability=100, roles=(
                role_factory("r2", required_grade="SE", needs_hire=True),
                role_factory("r3", required_grade="SM"),
            )),
        ]

    def test_identity(self, entities):
        assert all(matches(e, FilterCriteria()) for e in entities)
        assert filter_entities(entities, FilterCriteria()) == entities

    def test_and_composition(self, entities):
        criteria_grid = [
            FilterCriteria(client=c, grades=g, needs_hire=n, probability=p)
            for c, g, n, p in itertools.product(
                ["", "acme", "glob"],
                [[], ["SE"], ["JT", "SM"]],
                list(NeedsHire),
                [(0, 100), (50, 100)],
            )
        ]
        for entity in entities:
            for criteria in criteria_grid:
                expected = all(rule(entity, criteria) for rule in RULES)
                assert matches(entity, criteria) is expected

    def test_filter_entities(self, entities):
        result = filter_entities(entities, FilterCriteria(grades=["SE"]))
        assert [e.id for e in result] == ["c"]


class TestParsers:
    def test_parse_grades_drops_invalid(self):
        assert parse_grades("SE, JT,XX,") == frozenset({Grade.SE, Grade.JT})
        assert parse_grades("") == frozenset()
        assert parse_grades(["SM"]) == frozenset({Grade.SM})

    @pytest.mark.parametrize(
        "raw, expected",
        [("yes", NeedsHire.YES), ("no", NeedsHire.NO), ("all", NeedsHire.ALL),
         ("", NeedsHire.ALL), ("maybe", NeedsHire.ALL)],
    )
    def test_parse_needs_hire(self, raw, expected):
        assert parse_needs_hire(raw) is expected

    def test_sanitize_client(self):
        assert sanitize_client("  <script>alert(1)</script><b>Acme</b>  ") == "Acme"
        assert sanitize_client("x" * 150) == "x" * 100
        assert sanitize_client("abcdef", max_length=3) == "abc"
        assert sanitize_client("") == ""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("20-80", (20, 80)),
            ("0-100", (0, 100)),
            ("80-20", (0, 100)),
            ("-5-50", (0, 100)),
            ("10-200", (0, 100)),
            ("abc", (0, 100)),
            ("", (0, 100)),
            ((30, 40), (30, 40)),
        ],
    )
    def test_parse_probability(self, raw, expected):
        assert parse_probability(raw) == expected


class TestQueryParams:
    def test_from_query_params(self):
        criteria = FilterCriteria.from_query_params({
            "client": " <i>Acme</i> ",
            "grades": "SE,BOGUS",
            "needsHire": "yes",
            "probability": "20-80",
        })
        assert criteria.client == "Acme"
        assert criteria.grades == frozenset({Grade.SE})
        assert criteria.needs_hire is NeedsHire.YES
        assert criteria.probability == (20, 80)

    def test_snake_case_needs_hire_accepted(self):
        assert FilterCriteria.from_query_params({"needs_hire": "no"}).needs_hire is NeedsHire.NO

    def test_to_query_params_only_non_defaults(self):
        assert FilterCriteria().to_query_params() == {}
        criteria = FilterCriteria(grades=["SM", "JT"], probability=(10, 90))
        assert criteria.to_query_params() == {"grades": "JT,SM", "probability": "10-90"}

    def test_round_trip(self):
        criteria = FilterCriteria(client="acme", grades=["SE"], needs_hire="no", probability=(5, 95))
        assert FilterCriteria.from_query_params(criteria.to_query_params()) == criteria

    def test_default_flags(self):
        assert FilterCriteria().is_default
        assert not FilterCriteria().has_active_filters
        assert FilterCriteria(client="x").has_active_filters

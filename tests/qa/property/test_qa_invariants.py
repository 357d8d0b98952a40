"""
Property-based tests for QA system invariants using Hypothesis.

These tests verify that QA behaviour holds across a wide range of datasets.
"""

import copy

from hypothesis import given, strategies as st, settings, HealthCheck
from hypothesis.stateful import RuleBasedStateMachine, rule, invariant

from src.indicator_qa.processors.issue_lifecycle import (
    VALID_STATUSES,
    get_active_issues,
    revalidate_issues_after_edit,
    set_issue_status,
)
from src.indicator_qa.processors.qa import process_qa
from src.indicator_qa.processors.qa_core import CheckSeverity
from src.indicator_qa.processors.quality import calculate_quality_score, rate_score


values = st.one_of(
    st.integers(-1000, 100000),
    st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False),
    st.sampled_from(["12.5", "", "n/a", "1,000", None]),
)


@st.composite
def indicator_record(draw):
    """Generate a flat indicator record."""
    record = {
        "indicatorName": draw(st.sampled_from(["GDP", "CPI", "Exports", "الناتج المحلي"])),
        "filterName": draw(st.sampled_from(["Total", "Riyadh", "الإجمالي"])),
        "year": draw(st.one_of(st.integers(2000, 2030), st.sampled_from(["2020", None]))),
        "value": draw(values),
    }
    period = draw(st.sampled_from(["none", "month", "quarter"]))
    if period == "month":
        record["month"] = draw(st.integers(0, 13))
    elif period == "quarter":
        record["quarter"] = draw(st.integers(0, 5))
    return record


datasets = st.lists(indicator_record(), min_size=0, max_size=40)

qa_settings = settings(max_examples=60, deadline=None, suppress_health_check=[HealthCheck.too_slow])


class TestAnalysisInvariants:
    """Invariants of a single QA run."""

    @qa_settings
    @given(datasets)
    def test_analysis_is_total(self, records):
        results = process_qa(records)

        assert results.summary.failed_checks == len(results.issues)
        assert sum(v["failed"] for v in results.summary.checks_by_type.values()) == len(results.issues)
        assert all(issue.severity in CheckSeverity.ALL for issue in results.issues)
        assert 0 <= results.quality_score.overall <= 100

    @qa_settings
    @given(datasets)
    def test_issue_ids_unique_and_present(self, records):
        results = process_qa(records)

        ids = [issue.id for issue in results.issues]
        assert all(i and i.startswith("QA-") for i in ids)
        assert len(ids) == len(set(ids))

    @qa_settings
    @given(datasets)
    def test_issue_ids_deterministic(self, records):
        first = process_qa(records)
        second = process_qa(copy.deepcopy(records))

        assert [i.id for i in first.issues] == [i.id for i in second.issues]

    @qa_settings
    @given(datasets)
    def test_input_not_mutated(self, records):
        snapshot = copy.deepcopy(records)

        process_qa(records)

        assert records == snapshot

    @qa_settings
    @given(datasets)
    def test_rating_follows_score(self, records):
        score = process_qa(records).quality_score

        assert score.rating == rate_score(score.overall)
        assert all(i.rating == rate_score(i.score) for i in score.indicators)
        assert [i.score for i in score.indicators] == sorted(i.score for i in score.indicators)


class TestScoringInvariants:

    @qa_settings
    @given(datasets, st.data())
    def test_fewer_issues_never_lower_score(self, records, data):
        issues = process_qa(records).issues
        keep = data.draw(st.integers(0, len(issues)))

        full = calculate_quality_score(records, issues)
        partial = calculate_quality_score(records, issues[:keep])

        assert partial.overall >= full.overall
        for dimension, value in full.breakdown.items():
            assert partial.breakdown[dimension] >= value

    @qa_settings
    @given(datasets)
    def test_no_issues_scores_perfect(self, records):
        score = calculate_quality_score(records, [])

        assert score.overall == 100
        assert set(score.breakdown.values()) <= {100}


class TestRevalidationInvariants:

    @qa_settings
    @given(datasets)
    def test_revalidating_unchanged_data_resolves_nothing(self, records):
        previous = process_qa(records)

        outcome = revalidate_issues_after_edit(records, previous.issues, [], now=1)

        assert outcome.auto_resolved_count == 0
        assert outcome.updated_statuses == []
        assert [i.id for i in outcome.updated_issues] == [i.id for i in previous.issues]

    @qa_settings
    @given(datasets, datasets)
    def test_resolved_ids_come_from_previous_run(self, before, after):
        previous = process_qa(before)

        outcome = revalidate_issues_after_edit(after, previous.issues, [], now=1)

        previous_ids = {i.id for i in previous.issues}
        assert set(outcome.auto_resolved_ids) <= previous_ids
        assert len(outcome.auto_resolved_ids) == outcome.auto_resolved_count


class IssueStatusMachine(RuleBasedStateMachine):
    """Random resolve/dismiss/reactivate sequences over a fixed issue set."""

    def __init__(self):
        super().__init__()
        records = [
            {"indicatorName": "GDP", "filterName": "Total", "year": 2018, "value": -1},
            {"indicatorName": "GDP", "filterName": "Total", "year": 2018, "value": 2},
            {"indicatorName": "GDP", "filterName": "Total", "year": 2021, "value": "x"},
        ]
        self.issues = process_qa(records).issues
        self.statuses = []
        self.expected = {}

    @rule(index=st.integers(0, 10), status=st.sampled_from(VALID_STATUSES))
    def change_status(self, index, status):
        issue_id = self.issues[index % len(self.issues)].id
        self.statuses = set_issue_status(self.statuses, issue_id, status, "analyst", now=index)
        self.expected[issue_id] = status

    @invariant()
    def one_status_per_issue(self):
        ids = [s.issue_id for s in self.statuses]
        assert len(ids) == len(set(ids))

    @invariant()
    def active_issues_match_statuses(self):
        active = {i.id for i in get_active_issues(self.issues, self.statuses)}
        expected = {
            i.id for i in self.issues
            if self.expected.get(i.id, "active") == "active"
        }
        assert active == expected


TestIssueStatusMachine = IssueStatusMachine.TestCase
TestIssueStatusMachine.settings = settings(max_examples=30, stateful_step_count=20, deadline=None)

"""
Unit tests for building the filter snapshot from session records.
"""

import logging

import pytest

from admission_filter.domain.filtering import QuotaKey, SnapshotBuilder
from admission_filter.domain.models import (
    ApplicationRecord,
    FormulaRecord,
    SessionQuotaRecord,
    StudentRecord,
)


A00_CONDITIONS = {"subjectCombinations": [["math", "physics", "chemistry"]]}


@pytest.fixture
def students():
    return [
        StudentRecord(
            id="s2", id_card="002", full_name="Trần Thị Bình",
            scores={"math": 8.0, "physics": 7.5, "chemistry": 8.5, "english": 9.0},
        ),
        StudentRecord(
            id="s1", id_card="001", full_name="Nguyễn Văn An",
            scores={"math": 9.0, "physics": 8.5, "chemistry": 8.0}, priority_points=0.5,
        ),
    ]


def application(app_id, student_id, major_id="CNTT", method="A00", rank=1, subject_scores=None):
    return ApplicationRecord(
        id=app_id, student_id=student_id, major_id=major_id,
        admission_method=method, preference_priority=rank, subject_scores=subject_scores,
    )


def quota(quota_id, major_id="CNTT", method="A00", seats=2, formula_id=None, conditions=None):
    return SessionQuotaRecord(
        id=quota_id, major_id=major_id, admission_method=method, quota=seats,
        formula_id=formula_id, conditions=conditions,
    )


def codes(snapshot):
    return [w.code for w in snapshot.warnings]


@pytest.fixture
def builder():
    return SnapshotBuilder()


class TestSnapshotBuilder:
    """Tests for SnapshotBuilder.build."""

    def test_builds_candidates_by_id_card(self, builder, students):
        snapshot = builder.build(
            "sess",
            students,
            [
                application("a3", "s1", major_id="KT", rank=2),
                application("a1", "s1", rank=1, subject_scores={"math": 9.0, "physics": 8.5, "chemistry": 8.0}),
                application("a2", "s2"),
            ],
            [quota("q1", conditions=A00_CONDITIONS), quota("q2", major_id="KT")],
            [],
        )

        assert [c.candidate_id for c in snapshot.candidates] == ["001", "002"]
        first = snapshot.candidates[0]
        assert first.priority_points == 0.5
        assert [p.application_id for p in first.preferences] == ["a1", "a3"]
        assert first.preferences[1].quota_key == QuotaKey("KT", "A00")
        assert snapshot.quotas[QuotaKey("CNTT", "A00")].capacity == 2
        assert snapshot.application_count == 3
        assert snapshot.warnings == ()

    def test_compiles_formulas(self, builder, students):
        snapshot = builder.build(
            "sess", students, [],
            [quota("q1", formula_id="f1")],
            [FormulaRecord(id="f1", name="A00", formula="math + physics + chemistry")],
        )
        assert snapshot.formulas["f1"].source == "math + physics + chemistry"
        assert snapshot.quotas[QuotaKey("CNTT", "A00")].formula_id == "f1"

    def test_unparsable_formula_disables_quota(self, builder, students, caplog):
        with caplog.at_level(logging.WARNING):
            snapshot = builder.build(
                "sess", students, [application("a1", "s1")],
                [quota("q1", formula_id="f1")],
                [FormulaRecord(id="f1", name="broken", formula="math +")],
            )

        assert codes(snapshot) == ["formula_invalid", "formula_invalid"]
        assert QuotaKey("CNTT", "A00") in snapshot.quota_errors
        assert QuotaKey("CNTT", "A00") not in snapshot.quotas
        assert "does not parse" in caplog.text

    def test_deeply_nested_formula_disables_quota(self, builder, students):
        """Nesting past the parser's limit is a configuration warning, not a failed run."""
        nested = "(" * 2000 + "math" + ")" * 2000
        snapshot = builder.build(
            "sess", students, [application("a1", "s1")],
            [quota("q1", formula_id="f1"), quota("q2", major_id="KT")],
            [FormulaRecord(id="f1", name="nested", formula=nested)],
        )

        assert "formula_invalid" in codes(snapshot)
        assert QuotaKey("CNTT", "A00") in snapshot.quota_errors
        assert QuotaKey("KT", "A00") in snapshot.quotas

    def test_missing_formula(self, builder, students):
        snapshot = builder.build("sess", students, [], [quota("q1", formula_id="nope")], [])
        assert codes(snapshot) == ["formula_missing"]

    def test_duplicate_quota(self, builder, students):
        snapshot = builder.build("sess", students, [], [quota("q1"), quota("q2")], [])
        assert codes(snapshot) == ["quota_duplicate"]
        assert snapshot.quotas == {}

    def test_non_positive_capacity(self, builder, students):
        snapshot = builder.build("sess", students, [], [quota("q1", seats=0)], [])
        assert codes(snapshot) == ["quota_capacity_invalid"]

    def test_malformed_conditions(self, builder, students):
        snapshot = builder.build("sess", students, [], [quota("q1", conditions={"minTotal": 5})], [])
        assert codes(snapshot) == ["conditions_invalid"]
        assert QuotaKey("CNTT", "A00") in snapshot.quota_errors

    def test_unknown_student(self, builder, students):
        snapshot = builder.build("sess", students, [application("a1", "ghost")], [quota("q1")], [])
        assert codes(snapshot) == ["student_missing"]
        assert snapshot.candidates == ()

    def test_application_without_quota(self, builder, students):
        snapshot = builder.build(
            "sess", students,
            [application("a1", "s1", major_id="YD"), application("a2", "s2", major_id="YD")],
            [quota("q1")], [],
        )
        assert codes(snapshot) == ["quota_missing"]
        assert len(snapshot.candidates) == 2

    def test_duplicate_preference_rank(self, builder, students):
        snapshot = builder.build(
            "sess", students,
            [application("a1", "s1"), application("a2", "s1", major_id="KT")],
            [quota("q1"), quota("q2", major_id="KT")], [],
        )
        assert codes(snapshot) == ["duplicate_preference_rank"]

    def test_scores_derived_from_block(self, builder, students):
        snapshot = builder.build("sess", students, [application("a1", "s2")], [quota("q1")], [])

        (preference,) = snapshot.candidates[0].preferences
        assert dict(preference.subject_scores) == {"math": 8.0, "physics": 7.5, "chemistry": 8.5}

    def test_scores_derived_from_single_combination(self, builder, students):
        conditions = {"subjectCombinations": [["math", "english"]]}
        snapshot = builder.build(
            "sess", students,
            [application("a1", "s2", method="NL")],
            [quota("q1", method="NL", conditions=conditions)], [],
        )

        (preference,) = snapshot.candidates[0].preferences
        assert dict(preference.subject_scores) == {"math": 8.0, "english": 9.0}

    def test_block_method_map(self, students):
        builder = SnapshotBuilder({"a00": "THPT"})
        snapshot = builder.build(
            "sess", students, [application("a1", "s1", method="A00")],
            [quota("q1", method="THPT", conditions=A00_CONDITIONS)], [],
        )

        (preference,) = snapshot.candidates[0].preferences
        assert preference.quota_key == QuotaKey("CNTT", "THPT")
        assert set(preference.subject_scores) == {"math", "physics", "chemistry"}
        assert snapshot.warnings == ()

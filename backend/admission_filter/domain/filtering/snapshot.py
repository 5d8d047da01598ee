"""
Snapshot Builder

Converts the raw session records into the frozen FilterSnapshot the engine
runs on. Configuration problems are collected as warnings and disable only
the quota they concern.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from admission_filter.domain.filtering.blocks import block_subjects, map_block_to_method
from admission_filter.domain.filtering.conditions import Conditions
from admission_filter.domain.filtering.formula import FormulaSyntaxError, parse_formula
from admission_filter.domain.filtering.interfaces import (
    Candidate,
    CompiledFormula,
    FilterSnapshot,
    Preference,
    Quota,
    QuotaKey,
    RunWarning,
)
from admission_filter.domain.models import (
    ApplicationRecord,
    FormulaRecord,
    SessionQuotaRecord,
    StudentRecord,
)


logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Builds a FilterSnapshot from session records.

    Args:
        block_method_map: Block code -> admission method, used when an
            application's method has no quota of its own
    """

    def __init__(self, block_method_map: Optional[Mapping[str, str]] = None):
        self._block_method_map = {
            block.upper(): method for block, method in (block_method_map or {}).items()
        }

    def build(
        self,
        session_id: str,
        students: Sequence[StudentRecord],
        applications: Sequence[ApplicationRecord],
        quotas: Sequence[SessionQuotaRecord],
        formulas: Sequence[FormulaRecord],
    ) -> FilterSnapshot:
        warnings: List[RunWarning] = []

        compiled, broken_formulas = self._compile_formulas(formulas, warnings)
        quota_map, quota_errors = self._build_quotas(
            quotas, compiled, broken_formulas, warnings
        )
        candidates = self._build_candidates(
            students, applications, quota_map, quota_errors, warnings
        )

        for warning in warnings:
            logger.warning(f"Session {session_id}: {warning.message}")

        return FilterSnapshot(
            session_id=session_id,
            candidates=candidates,
            quotas=quota_map,
            formulas=compiled,
            quota_errors=quota_errors,
            warnings=tuple(warnings),
        )

    def _compile_formulas(self, formulas, warnings):
        compiled: Dict[str, CompiledFormula] = {}
        broken: Dict[str, str] = {}
        for record in formulas:
            try:
                expression = parse_formula(record.formula)
            except FormulaSyntaxError as e:
                broken[record.id] = str(e)
                warnings.append(RunWarning(
                    code="formula_invalid",
                    message=f"Formula {record.id} ({record.name}) does not parse: {e}",
                ))
                continue
            compiled[record.id] = CompiledFormula(
                formula_id=record.id,
                name=record.name,
                source=record.formula,
                expression=expression,
            )
        return compiled, broken

    def _build_quotas(self, quotas, compiled, broken_formulas, warnings):
        quota_map: Dict[QuotaKey, Quota] = {}
        quota_errors: Dict[QuotaKey, str] = {}

        def fail(key: QuotaKey, code: str, message: str) -> None:
            quota_errors[key] = message
            warnings.append(RunWarning(code=code, message=message, quota_key=key))

        seen = set()
        for record in sorted(quotas, key=lambda q: (q.major_id, q.admission_method, q.id)):
            key = QuotaKey(record.major_id, record.admission_method)

            if key in seen:
                quota_map.pop(key, None)
                fail(key, "quota_duplicate", f"Quota {key} is configured more than once")
                continue
            seen.add(key)

            if record.quota <= 0:
                fail(key, "quota_capacity_invalid", f"Quota {key} has non-positive capacity {record.quota}")
                continue

            try:
                conditions = Conditions.model_validate(record.conditions or {})
            except PydanticValidationError as e:
                fail(key, "conditions_invalid", f"Quota {key} has malformed conditions: {e.error_count()} error(s)")
                continue

            if record.formula_id is not None:
                if record.formula_id in broken_formulas:
                    fail(key, "formula_invalid", f"Quota {key} uses unparsable formula {record.formula_id}")
                    continue
                if record.formula_id not in compiled:
                    fail(key, "formula_missing", f"Quota {key} references missing formula {record.formula_id}")
                    continue

            quota_map[key] = Quota(
                key=key,
                capacity=record.quota,
                conditions=conditions,
                formula_id=record.formula_id,
            )

        return quota_map, quota_errors

    def _resolve_key(self, record: ApplicationRecord, configured) -> QuotaKey:
        key = QuotaKey(record.major_id, record.admission_method)
        if key in configured:
            return key
        method = map_block_to_method(record.admission_method, self._block_method_map)
        if method is not None:
            return QuotaKey(record.major_id, method)
        return key

    @staticmethod
    def _subject_scores(
        record: ApplicationRecord,
        student: StudentRecord,
        quota: Optional[Quota],
    ) -> Dict[str, Optional[float]]:
        """Scores submitted with the application, derived from the student if absent."""
        if record.subject_scores:
            return dict(record.subject_scores)

        subjects = block_subjects(record.admission_method)
        if subjects is None and quota is not None and len(quota.conditions.subject_combinations) == 1:
            subjects = quota.conditions.subject_combinations[0]
        if subjects is None:
            return {}
        return {subject: student.scores[subject] for subject in subjects if subject in student.scores}

    def _build_candidates(self, students, applications, quota_map, quota_errors, warnings):
        students_by_id = {s.id: s for s in students}
        configured = set(quota_map) | set(quota_errors)
        grouped: Dict[str, List[Preference]] = defaultdict(list)
        missing_keys = set()

        for record in sorted(applications, key=lambda a: (a.student_id, a.preference_priority, a.id)):
            student = students_by_id.get(record.student_id)
            if student is None:
                warnings.append(RunWarning(
                    code="student_missing",
                    message=f"Application {record.id} references unknown student {record.student_id}",
                ))
                continue

            key = self._resolve_key(record, configured)
            if key not in configured and key not in missing_keys:
                missing_keys.add(key)
                warnings.append(RunWarning(
                    code="quota_missing",
                    message=f"Applications target {key} but no quota is configured",
                    quota_key=key,
                ))

            if any(p.rank == record.preference_priority for p in grouped[student.id_card]):
                warnings.append(RunWarning(
                    code="duplicate_preference_rank",
                    message=(
                        f"Student {student.id_card} has more than one preference "
                        f"ranked {record.preference_priority}"
                    ),
                ))

            grouped[student.id_card].append(Preference(
                application_id=record.id,
                quota_key=key,
                rank=record.preference_priority,
                subject_scores=self._subject_scores(record, student, quota_map.get(key)),
            ))

        students_by_card = {s.id_card: s for s in students}
        return tuple(
            Candidate(
                candidate_id=id_card,
                scores=students_by_card[id_card].scores,
                priority_points=students_by_card[id_card].priority_points,
                preferences=tuple(preferences),
            )
            for id_card, preferences in sorted(grouped.items())
        )

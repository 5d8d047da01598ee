#!/usr/bin/env python3
"""
Seed Demo Session Script

Creates a small admission session with two majors, block-based quotas and a
handful of students, enough to exercise the virtual filter end to end.

Usage:
    python -m scripts.seed_demo_session
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from admission_filter.domain.filtering.blocks import ADMISSION_BLOCKS
from admission_filter.infrastructure.db.database import close_db, get_session_context, init_db
from admission_filter.infrastructure.db.models import (
    AdmissionFormula,
    AdmissionSession,
    Application,
    Major,
    SessionQuota,
    SessionStatus,
    Student,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


FORMULA_TEMPLATE = "max(0, {subjects}) + min(priorityPoints, maxBonus)"

SEED_MAJORS = [
    ("CNTT", "Công nghệ thông tin", "A00", 2),
    ("KT", "Kinh tế", "D01", 1),
]

# id_card, full_name, scores, priority_points, [(major_code, block), ...] in preference order
SEED_STUDENTS = [
    ("001200000001", "Nguyễn Văn An", {"math": 9.0, "physics": 8.5, "chemistry": 8.0, "literature": 7.0, "english": 8.0}, 0.5,
     [("CNTT", "A00"), ("KT", "D01")]),
    ("001200000002", "Trần Thị Bình", {"math": 8.0, "physics": 7.5, "chemistry": 8.5, "literature": 8.5, "english": 9.0}, 0.0,
     [("CNTT", "A00"), ("KT", "D01")]),
    ("001200000003", "Lê Văn Cường", {"math": 9.5, "physics": 9.0, "chemistry": 9.0, "literature": 6.0, "english": 7.0}, 1.0,
     [("CNTT", "A00")]),
    ("001200000004", "Phạm Thị Dung", {"math": 7.0, "literature": 9.0, "english": 9.5, "history": 8.0}, 0.25,
     [("KT", "D01"), ("CNTT", "A00")]),
]


async def seed_database() -> dict:
    await init_db()
    stats = {"students": 0, "applications": 0}

    async with get_session_context() as session:
        admission_session = AdmissionSession(name="Demo 2026", year=2026, status=SessionStatus.ACTIVE)
        session.add(admission_session)

        majors = {}
        for code, name, block, seats in SEED_MAJORS:
            major = Major(code=code, name=name)
            session.add(major)
            majors[code] = major
            subjects = " + ".join(sorted(ADMISSION_BLOCKS[block]))
            block_formula = AdmissionFormula(
                name=f"{block} + ưu tiên",
                formula=FORMULA_TEMPLATE.format(subjects=subjects),
                description="Block sum plus capped priority points",
            )
            session.add(block_formula)
            await session.flush()
            session.add(SessionQuota(
                session_id=admission_session.id,
                major_id=major.id,
                formula_id=block_formula.id,
                admission_method=block,
                quota=seats,
                conditions={
                    "minTotalScore": 15,
                    "subjectCombinations": [sorted(ADMISSION_BLOCKS[block])],
                    "priorityBonus": {"enabled": True, "maxBonus": 2},
                },
            ))

        for id_card, full_name, scores, priority, preferences in SEED_STUDENTS:
            student = Student(
                id_card=id_card,
                full_name=full_name,
                scores=scores,
                priority_points=priority,
                session_id=admission_session.id,
            )
            session.add(student)
            await session.flush()
            stats["students"] += 1

            for rank, (major_code, block) in enumerate(preferences, start=1):
                session.add(Application(
                    student_id=student.id,
                    session_id=admission_session.id,
                    major_id=majors[major_code].id,
                    admission_method=block,
                    preference_priority=rank,
                    subject_scores={s: scores.get(s) for s in sorted(ADMISSION_BLOCKS[block])},
                ))
                stats["applications"] += 1

        await session.flush()
        stats["session_id"] = str(admission_session.id)

    await close_db()
    logger.info(f"Seeded session {stats['session_id']}: {stats['students']} students, "
                f"{stats['applications']} applications")
    return stats


if __name__ == "__main__":
    asyncio.run(seed_database())

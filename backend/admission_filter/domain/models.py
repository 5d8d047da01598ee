"""
Domain Models for the Admission Filter service

Pydantic records exchanged between the persistence layer and the virtual
filter engine. These mirror the stored rows the engine reads.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class StudentRecord(BaseModel):
    """A student with raw subject scores."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    id_card: str = Field(..., min_length=1, max_length=20)
    full_name: Optional[str] = None
    scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    priority_points: float = Field(default=0.0, ge=0.0)

    @field_validator("scores")
    @classmethod
    def validate_score_range(cls, v: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        for subject, value in v.items():
            if value is not None and not 0.0 <= value <= 10.0:
                raise ValueError(f"Score for '{subject}' must be between 0 and 10")
        return v


class ApplicationRecord(BaseModel):
    """One preference (nguyện vọng) of a student."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    major_id: str
    admission_method: str
    preference_priority: int = Field(..., ge=1)
    subject_scores: Optional[Dict[str, Optional[float]]] = None


class SessionQuotaRecord(BaseModel):
    """Seat quota of one (major, admission method) in a session."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    major_id: str
    admission_method: str
    quota: int
    formula_id: Optional[str] = None
    conditions: Optional[Dict[str, Any]] = None


class FormulaRecord(BaseModel):
    """Stored scoring expression."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = ""
    formula: str

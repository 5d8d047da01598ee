"""
Admission Blocks

Standard subject combinations (khối / tổ hợp) used in quota configuration.
"""

from typing import Dict, FrozenSet, Mapping, Optional


ADMISSION_BLOCKS: Dict[str, FrozenSet[str]] = {
    "A00": frozenset({"math", "physics", "chemistry"}),
    "A01": frozenset({"math", "physics", "english"}),
    "B00": frozenset({"math", "chemistry", "biology"}),
    "C00": frozenset({"literature", "history", "geography"}),
    "D01": frozenset({"math", "literature", "english"}),
    "D07": frozenset({"math", "chemistry", "english"}),
    "D08": frozenset({"math", "biology", "english"}),
    "D09": frozenset({"math", "geography", "english"}),
    "D10": frozenset({"math", "history", "english"}),
}


def block_subjects(code: str) -> Optional[FrozenSet[str]]:
    """Subjects of a block code, case-insensitive. None for unknown codes."""
    return ADMISSION_BLOCKS.get(code.strip().upper())


def map_block_to_method(code: str, block_method_map: Mapping[str, str]) -> Optional[str]:
    """Admission method a block code is filed under, if one is configured."""
    return block_method_map.get(code.strip().upper())

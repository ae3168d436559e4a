"""
Acknowledgement tracking for the findings of the current analysis.
"""
from typing import List, Set


class FindingTracker:
    """
    Tracks acknowledged findings with a single watermark.

    Every finding below the watermark counts as complete. Checking index i
    raises the watermark to at least i + 1; unchecking index i drops it to i,
    which also unchecks everything after i.
    """

    mode = "watermark"

    def __init__(self, total: int = 0):
        self.total = 0
        self.watermark = 0
        self.reset(total)

    def reset(self, total: int) -> None:
        if total < 0:
            raise ValueError("Total findings cannot be negative")
        self.total = total
        self.watermark = 0

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.total:
            raise IndexError(f"Finding index {index} out of range (0-{self.total - 1})")

    def set_completion(self, index: int, checked: bool) -> None:
        self._check_index(index)
        if checked:
            self.watermark = max(self.watermark, index + 1)
        else:
            self.watermark = index

    def is_complete(self, index: int) -> bool:
        self._check_index(index)
        return self.watermark > index

    def completed_count(self) -> int:
        return self.watermark

    def progress_ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed_count() / self.total

    def completed_flags(self) -> List[bool]:
        return [self.is_complete(i) for i in range(self.total)]


class ChecklistTracker(FindingTracker):
    """Per-index alternative: each finding is checked or unchecked on its own."""

    mode = "checklist"

    def reset(self, total: int) -> None:
        super().reset(total)
        self.checked: Set[int] = set()

    def set_completion(self, index: int, checked: bool) -> None:
        self._check_index(index)
        if checked:
            self.checked.add(index)
        else:
            self.checked.discard(index)

    def is_complete(self, index: int) -> bool:
        self._check_index(index)
        return index in self.checked

    def completed_count(self) -> int:
        return len(self.checked)


def create_tracker(mode: str = "watermark") -> FindingTracker:
    if mode == "checklist":
        return ChecklistTracker()
    if mode != "watermark":
        raise ValueError(f"Unknown tracker mode '{mode}'")
    return FindingTracker()

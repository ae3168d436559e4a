"""
Tests for finding acknowledgement tracking.
"""

import pytest
import os
import sys

# Add the project root to the path when running tests from the repository root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seo_advisor.tracker import ChecklistTracker, FindingTracker, create_tracker


def test_checking_raises_watermark():
    tracker = FindingTracker(5)
    tracker.set_completion(2, True)
    assert tracker.watermark == 3
    assert tracker.completed_flags() == [True, True, True, False, False]
    assert tracker.progress_ratio() == pytest.approx(0.6)


def test_checking_lower_index_keeps_watermark():
    tracker = FindingTracker(5)
    tracker.set_completion(3, True)
    tracker.set_completion(1, True)
    assert tracker.watermark == 4


def test_unchecking_resets_watermark_to_index():
    """Checking 2 of 5 then unchecking 0 leaves nothing acknowledged."""
    tracker = FindingTracker(5)
    tracker.set_completion(2, True)
    tracker.set_completion(0, False)
    assert tracker.watermark == 0
    assert tracker.progress_ratio() == 0.0
    assert not any(tracker.completed_flags())


def test_unchecking_above_watermark_lowers_nothing_below():
    tracker = FindingTracker(5)
    tracker.set_completion(1, True)
    tracker.set_completion(4, False)
    assert tracker.watermark == 4
    assert tracker.is_complete(3) is True


def test_is_complete():
    tracker = FindingTracker(3)
    tracker.set_completion(1, True)
    assert tracker.is_complete(0) is True
    assert tracker.is_complete(1) is True
    assert tracker.is_complete(2) is False


def test_progress_ratio_without_findings():
    tracker = FindingTracker(0)
    assert tracker.progress_ratio() == 0.0
    assert tracker.completed_flags() == []


@pytest.mark.parametrize("index", [-1, 5, 99])
def test_out_of_range_index_is_rejected(index):
    tracker = FindingTracker(5)
    with pytest.raises(IndexError):
        tracker.set_completion(index, True)
    assert tracker.watermark == 0


def test_reset_clears_watermark():
    tracker = FindingTracker(5)
    tracker.set_completion(4, True)
    tracker.reset(3)
    assert tracker.watermark == 0
    assert tracker.total == 3


def test_checklist_tracker_keeps_indices_independent():
    tracker = ChecklistTracker(5)
    tracker.set_completion(2, True)
    tracker.set_completion(4, True)
    tracker.set_completion(0, False)
    assert tracker.completed_flags() == [False, False, True, False, True]
    assert tracker.progress_ratio() == pytest.approx(0.4)

    tracker.set_completion(2, False)
    assert tracker.completed_flags() == [False, False, False, False, True]


def test_checklist_tracker_reset():
    tracker = ChecklistTracker(3)
    tracker.set_completion(1, True)
    tracker.reset(2)
    assert tracker.completed_flags() == [False, False]


def test_create_tracker():
    assert type(create_tracker("watermark")) is FindingTracker
    assert type(create_tracker("checklist")) is ChecklistTracker
    with pytest.raises(ValueError):
        create_tracker("bogus")

"""
🧭 WIZARD - Which step are we on?
=================================
Step order, next / previous, and the progress bar number.
Progress is saved per user so a refresh lands on the same step.
"""

import logging
from typing import Any, Dict, List, Optional

from models import SetupProgress
from storage import RowStore, load_progress, save_progress


logger = logging.getLogger(__name__)

STEPS: List[str] = [
    "School Information",
    "Academic Calendar",
    "Infrastructure",
    "Students",
    "Teachers",
    "Subjects",
    "Classes",
    "Teacher-Subject Mapping",
    "Time Slots",
    "Complete",
]


class SetupWizard:
    def __init__(self, progress: Optional[SetupProgress] = None):
        self.progress = progress or SetupProgress()
        self.progress.current_step = self._clamp(self.progress.current_step)

    @staticmethod
    def _clamp(step: int) -> int:
        return max(1, min(int(step), len(STEPS)))

    @property
    def current_step(self) -> int:
        return self.progress.current_step

    @property
    def title(self) -> str:
        return STEPS[self.current_step - 1]

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(STEPS)

    @property
    def percent(self) -> float:
        return (self.current_step - 1) / (len(STEPS) - 1) * 100

    def next_step(self) -> int:
        self.progress.current_step = self._clamp(self.current_step + 1)
        return self.current_step

    def previous_step(self) -> int:
        self.progress.current_step = self._clamp(self.current_step - 1)
        return self.current_step

    def go_to(self, step: int) -> int:
        self.progress.current_step = self._clamp(step)
        return self.current_step

    def complete_step(self, step_data: Optional[Dict[str, Any]] = None) -> None:
        """Mark the current step done and merge what it handed over."""
        if step_data:
            self.progress.step_data.update(step_data)
        if self.current_step not in self.progress.completed_steps:
            self.progress.completed_steps = sorted(self.progress.completed_steps + [self.current_step])
        logger.debug("Step %d (%s) completed", self.current_step, self.title)

    def set_school(self, school_id: str) -> None:
        self.progress.school_id = school_id

    @classmethod
    def load(cls, store: RowStore, user_id: str) -> "SetupWizard":
        return cls(load_progress(store, user_id))

    def save(self, store: RowStore, user_id: str) -> bool:
        return save_progress(store, user_id, self.progress)

"""
🔗 SCHEDULER HANDOFF
====================
The scheduler is a separate app. We hand it our data two ways:
- a small key/value file that mirrors what the browser keeps in local storage
- a one-off JSON export of everything saved for the school
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple

from models import SetupData
from storage import CLASSES, SCHOOLS, STUDENTS, SUBJECTS, TEACHERS, TIME_SLOTS, RowStore


logger = logging.getLogger(__name__)

LOCAL_STATE_FILE_NAME = "local_state.json"

KEY_SCHOOL_ID = "schoolId"
KEY_SETUP_SCHOOL_ID = "setupSchoolId"
KEY_SCHEDULER_DATA = "schedulerData"
KEY_SETUP_COMPLETE = "setupComplete"
KEY_SCHOOL_INFO = "schoolInfo"

HANDOFF_KEYS = (KEY_SETUP_SCHOOL_ID, KEY_SCHEDULER_DATA, KEY_SETUP_COMPLETE, KEY_SCHOOL_INFO, KEY_SCHOOL_ID)

SCHOOL_INFO_FIELDS = ("name", "address", "phone", "email", "principal_name", "academic_year", "timezone")


class LocalState:
    """String key/value store in one JSON file. Same shape as browser local storage."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Local state unreadable, starting empty: %s", e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = str(value)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


def pass_data_to_scheduler(local: LocalState, data: SetupData) -> dict:
    """Write everything the scheduler reads on startup. Returns the summary payload."""
    school = data.school
    scheduler_data = {
        "schoolId": data.school_id,
        "schoolInfo": {f: getattr(school, f, None) for f in SCHOOL_INFO_FIELDS},
        "setupTimestamp": datetime.now(timezone.utc).isoformat(),
    }
    if data.school_id:
        local.set_item(KEY_SETUP_SCHOOL_ID, data.school_id)
    local.set_item(KEY_SCHEDULER_DATA, json.dumps(scheduler_data))
    local.set_item(KEY_SETUP_COMPLETE, "true")
    local.set_item(KEY_SCHOOL_INFO, json.dumps(data.to_dict()))
    logger.info("Data passed to scheduler for school %s", data.school_id)
    return scheduler_data


def get_scheduler_data(local: LocalState) -> Optional[dict]:
    """What the scheduler would see. None if a stored value is corrupt."""
    try:
        scheduler_data = local.get_item(KEY_SCHEDULER_DATA)
        school_info = local.get_item(KEY_SCHOOL_INFO)
        return {
            "schedulerData": json.loads(scheduler_data) if scheduler_data else None,
            "setupSchoolId": local.get_item(KEY_SETUP_SCHOOL_ID),
            "schoolInfo": json.loads(school_info) if school_info else None,
            "setupComplete": local.get_item(KEY_SETUP_COMPLETE) == "true",
        }
    except json.JSONDecodeError as e:
        logger.error("Error getting scheduler data: %s", e)
        return None


def check_for_setup_data(local: LocalState) -> Optional[str]:
    return local.get_item(KEY_SETUP_SCHOOL_ID) or local.get_item(KEY_SCHOOL_ID)


def clear_scheduler_data(local: LocalState) -> None:
    """Forget the handoff (used by "start over")."""
    for key in HANDOFF_KEYS:
        local.remove_item(key)


def export_filename(school_name: Optional[str]) -> str:
    slug = re.sub(r"\s+", "-", school_name).lower() if school_name else "export"
    return f"school-data-{slug}.json"


def export_school_data(store: RowStore, school_id: str) -> Tuple[str, str]:
    """(file name, JSON text) with the school and its saved records."""
    schools = store.select(SCHOOLS, id=school_id)
    school = schools[0] if schools else None
    payload = {
        "school": school,
        "students": store.select(STUDENTS, school_id=school_id),
        "teachers": store.select(TEACHERS, school_id=school_id),
        "subjects": store.select(SUBJECTS, school_id=school_id),
        "classes": store.select(CLASSES, school_id=school_id),
        "timeSlots": store.select(TIME_SLOTS, school_id=school_id),
    }
    name = school.get("name") if school else None
    return export_filename(name), json.dumps(payload, indent=2, ensure_ascii=False)

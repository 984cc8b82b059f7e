import pytest

from models import Class, SchoolInfo, SetupData, Subject, Teacher
from storage import RowStore


@pytest.fixture
def teachers():
    return [
        Teacher(id="t1", first_name="Ann", last_name="Lee", max_periods_per_day=6),
        Teacher(id="t2", first_name="Ben", last_name="Ray", max_periods_per_day=6),
    ]


@pytest.fixture
def subjects():
    return [
        Subject(id="s1", name="Maths", code="MATH", periods_per_week=4),
        Subject(id="s2", name="English", code="ENG"),
        Subject(id="s3", name="Science", code="SCI", periods_per_week=6),
    ]


@pytest.fixture
def classes():
    return [
        Class(id="c1", name="5A", grade="5", section="A"),
        Class(id="c2", name="5B", grade="5", section="B"),
    ]


@pytest.fixture
def school():
    return SchoolInfo(name="Green Valley School", principal_name="R. Sharma", email="office@gvs.edu")


@pytest.fixture
def setup_data(school, teachers, subjects, classes):
    return SetupData(school_id="sch1", school=school, teachers=teachers, subjects=subjects, classes=classes)


@pytest.fixture
def store(tmp_path):
    return RowStore(tmp_path / "data")

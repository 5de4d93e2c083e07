import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("NOTIFICATIONS_SIMULATE", "true")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from beanie import init_beanie  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

from app.models import DOCUMENT_MODELS  # noqa: E402
from app.models.attendance import AttendanceRecord, AttendanceStatus  # noqa: E402
from app.models.student import Student  # noqa: E402
from app.services.messaging import ChannelError  # noqa: E402

TODAY = date(2026, 3, 20)


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    await init_beanie(
        database=client.get_database(name="attendance_test"),
        document_models=DOCUMENT_MODELS,
    )
    yield client


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
async def make_student(db):
    counter = {"n": 0}

    async def _make(**overrides) -> Student:
        counter["n"] += 1
        fields = {
            "student_id": f"{10000 + counter['n']}",
            "first_name": "Student",
            "last_name": f"No{counter['n']}",
            "class_name": "10A",
            "grade_level": 10,
        }
        fields.update(overrides)
        s = Student(**fields)
        await s.insert()
        return s

    return _make


@pytest.fixture
async def add_records(db):
    """Insert records for one student; statuses are given most-recent-first ending at ``end``."""

    async def _add(student: Student, statuses: list[str], end: date = TODAY) -> list[AttendanceRecord]:
        records = []
        for offset, status in enumerate(statuses):
            r = AttendanceRecord(
                student_id=str(student.id),
                date=end - timedelta(days=offset),
                status=AttendanceStatus(status),
            )
            await r.insert()
            records.append(r)
        return records

    return _add


class FakeMessagingClient:
    """Records every send; channels listed in ``failing`` raise ChannelError."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent: list[tuple[str, str, str]] = []

    def _deliver(self, channel: str, to: str, body: str) -> dict:
        if channel in self.failing:
            raise ChannelError(f"{channel} provider down")
        self.sent.append((channel, to, body))
        return {"success": True, "id": f"{channel}-test", "to": to}

    async def send_sms(self, to: str, body: str) -> dict:
        return self._deliver("sms", to, body)

    async def send_whatsapp(self, to: str, body: str) -> dict:
        return self._deliver("whatsapp", to, body)

    async def send_email(self, to: str, subject: str, body: str) -> dict:
        return self._deliver("email", to, body)


@pytest.fixture
def messaging():
    return FakeMessagingClient()


@pytest.fixture
def failing_messaging():
    def _make(*channels: str) -> FakeMessagingClient:
        return FakeMessagingClient(failing=channels)

    return _make

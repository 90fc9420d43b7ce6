"""
Shared builders for ledger tests.
2026-01-07 is a Wednesday (day_of_week=2).
"""
from datetime import date, time
from decimal import Decimal

from accounts.models import User
from instructors.models import Instructor
from students.models import Student
from cycles.models import Cycle
from cycles.services.generator import create_cycle

WEDNESDAY = 2
FIRST_WEDNESDAY = date(2026, 1, 7)


def make_user(email="manager@ledger.test", role=User.ROLE_MANAGER):
    return User.objects.create_user(
        email=email,
        password="pass123",
        full_name=email.split("@")[0].title(),
        role=role,
    )


def make_instructor(name="Dana Levi", **rates):
    rates.setdefault("rate_frontal", Decimal("100.00"))
    return Instructor.objects.create(name=name, **rates)


def make_student(full_name="Student One"):
    return Student.objects.create(full_name=full_name)


def make_cycle(actor=None, **overrides):
    """Wednesday 18:00-19:30 cycle, 10 meetings, 50/student with a 4-student override."""
    fields = {
        "name": "Python Wednesday",
        "pricing_mode": Cycle.PRICING_PER_STUDENT,
        "price_per_student": Decimal("50.00"),
        "student_count": 4,
        "day_of_week": WEDNESDAY,
        "start_time": time(18, 0),
        "end_time": time(19, 30),
        "start_date": FIRST_WEDNESDAY,
        "total_meetings": 10,
    }
    if "instructor" not in overrides:
        fields["instructor"] = make_instructor()
    fields.update(overrides)
    return create_cycle(actor=actor, **fields)

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from .dates import parse_iso_date


UNKNOWN_PROJECT = "未知專案"
UNKNOWN_USER = "未知"
UNASSIGNED_DEPARTMENT = "未分配"


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    DEPARTMENT_ADMIN = "department_admin"
    MEMBER = "member"


class Scope(str, Enum):
    INDIVIDUAL = "individual"
    DEPARTMENT = "department"
    COMPANY = "company"


class Granularity(str, Enum):
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class CompletionTargets:
    daily_hours: float = 7.0
    weekly_hours: float = 35.0


@dataclass
class TimeEntry:
    id: str
    user_id: str
    project_id: str
    date: date
    hours: float
    note: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TimeEntry":
        return cls(
            id=str(record["id"]),
            user_id=str(record["user_id"]),
            project_id=str(record["project_id"]),
            date=parse_iso_date(record["date"]),
            hours=float(record.get("hours") or 0.0),
            note=record.get("note") or None,
        )


@dataclass
class Project:
    id: str
    name: str
    color: str
    is_active: bool = True
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Project":
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            color=record.get("color", "#7C9CBF"),
            is_active=bool(record.get("is_active", True)),
            description=record.get("description"),
        )


@dataclass
class Profile:
    id: str
    username: str
    department_id: Optional[str] = None
    role: Role = Role.MEMBER

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Profile":
        department_id = record.get("department_id")
        return cls(
            id=str(record["id"]),
            username=record.get("username", ""),
            department_id=str(department_id) if department_id else None,
            role=Role(record.get("role") or Role.MEMBER.value),
        )


@dataclass
class Department:
    id: str
    name: str
    code: str = ""
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Department":
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            code=record.get("code", ""),
            is_active=bool(record.get("is_active", True)),
        )


@dataclass
class DraftEntry:
    """An unsaved entry produced by quick-fill, reviewed before submission."""

    project_id: str
    hours: float
    date: date
    note: str = ""


@dataclass
class Group:
    entries: List[TimeEntry] = field(default_factory=list)
    total_hours: float = 0.0

    def add(self, entry: TimeEntry) -> None:
        self.entries.append(entry)
        self.total_hours += entry.hours


@dataclass
class DayCompletion:
    hours: float
    is_complete: bool
    shortfall: float


@dataclass
class DayStatus:
    date: date
    day_name: str
    filled: bool
    hours: float
    is_workday: bool
    is_complete: bool
    shortfall: float


@dataclass
class WeekProgress:
    filled_days: int
    total_days: int
    percentage: float
    total_hours: float
    daily_status: List[DayStatus] = field(default_factory=list)


@dataclass
class DailyRecord:
    date: date
    entries: List[TimeEntry]
    total_hours: float
    is_workday: bool
    hours_needed: float
    shortfall: float


@dataclass
class UserStats:
    user_id: str
    username: str
    total_hours: float = 0.0
    entries: List[TimeEntry] = field(default_factory=list)
    daily_hours: Dict[date, float] = field(default_factory=dict)


@dataclass
class DepartmentStats:
    department_id: str
    department_name: str
    total_hours: float = 0.0
    member_count: int = 0
    avg_hours: float = 0.0
    profiles: List[Profile] = field(default_factory=list)
    entries: List[TimeEntry] = field(default_factory=list)


@dataclass
class MemberCompletion:
    is_complete: bool
    remaining_hours: float


@dataclass
class WeekBreakdown:
    label: str
    week_start: date
    week_end: date
    project_hours: Dict[str, float] = field(default_factory=dict)
    total_hours: float = 0.0

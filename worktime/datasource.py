from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .models import Department, Profile, Project, TimeEntry


class DataSource(Protocol):
    """What the reporting core needs from the backend."""

    def fetch_entries(self) -> List[TimeEntry]: ...

    def fetch_projects(self) -> List[Project]: ...

    def fetch_profiles(self) -> List[Profile]: ...

    def fetch_departments(self) -> List[Department]: ...


class InMemoryDataSource:
    def __init__(
        self,
        entries: Optional[Iterable[TimeEntry]] = None,
        projects: Optional[Iterable[Project]] = None,
        profiles: Optional[Iterable[Profile]] = None,
        departments: Optional[Iterable[Department]] = None,
    ) -> None:
        self.entries = list(entries or [])
        self.projects = list(projects or [])
        self.profiles = list(profiles or [])
        self.departments = list(departments or [])

    def fetch_entries(self) -> List[TimeEntry]:
        return list(self.entries)

    def fetch_projects(self) -> List[Project]:
        return list(self.projects)

    def fetch_profiles(self) -> List[Profile]:
        return list(self.profiles)

    def fetch_departments(self) -> List[Department]:
        return list(self.departments)

    def find_profile(self, profile_id: str) -> Optional[Profile]:
        return next((p for p in self.profiles if p.id == profile_id), None)


class JsonFileDataSource(InMemoryDataSource):
    """Snapshot of backend tables exported as one JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__()
        self.load()

    def load(self) -> None:
        if not self.path.exists():
            raise FileNotFoundError(f"Snapshot not found at {self.path}")
        content: Dict[str, Any] = json.loads(self.path.read_text(encoding="utf-8"))
        self.entries = [TimeEntry.from_record(r) for r in content.get("time_entries", [])]
        self.projects = [Project.from_record(r) for r in content.get("projects", [])]
        self.profiles = [Profile.from_record(r) for r in content.get("profiles", [])]
        self.departments = [Department.from_record(r) for r in content.get("departments", [])]

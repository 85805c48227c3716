from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from app.core.config import Settings, get_settings
from worktime.datasource import InMemoryDataSource, JsonFileDataSource
from worktime.models import CompletionTargets, Profile


def get_data_source(settings: Settings = Depends(get_settings)) -> InMemoryDataSource:
    try:
        return JsonFileDataSource(settings.data_path)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=503, detail="Work-hours data is not available") from exc


def get_targets(settings: Settings = Depends(get_settings)) -> CompletionTargets:
    return settings.targets


def get_viewer(
    x_profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    source: InMemoryDataSource = Depends(get_data_source),
) -> Profile:
    """Profile of the caller, as forwarded by the upstream auth layer."""
    viewer = source.find_profile(x_profile_id) if x_profile_id else None
    if viewer is None:
        raise HTTPException(status_code=401, detail="Unknown profile")
    return viewer

# progress_hub/api/dependencies/store.py
from fastapi import Request

from progress_hub.core.config import Settings
from progress_hub.services.meeting_workflow import MeetingWorkflow
from progress_hub.services.store import AppStore


def get_store(request: Request) -> AppStore:
    """
    The process-wide store created by `create_app()`.
    """
    return request.app.state.store


def get_workflow(request: Request) -> MeetingWorkflow:
    return request.app.state.meeting_workflow


def get_app_settings(request: Request) -> Settings:
    """
    The settings this app was built with, which may differ from the cached
    process-wide `get_settings()` when `create_app()` was given its own.
    """
    return request.app.state.settings

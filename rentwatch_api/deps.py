"""
FastAPI dependencies shared by the route modules.
"""
from fastapi import Request

from rentwatch.config import Settings

from .runner import RunCoordinator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_coordinator(request: Request) -> RunCoordinator:
    return request.app.state.coordinator

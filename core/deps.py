from __future__ import annotations

from typing import Annotated, Any
from fastapi import Depends, Request

from core.providers import providers_from_request


# -----------------------------
# Canonical provider access
# -----------------------------

def get_providers(request: Request) -> Any:
    """
    Canonical runtime provider resolver.

    Source of truth: request.app.state.providers
    """
    return providers_from_request(request)


ProvidersDep = Annotated[Any, Depends(get_providers)]


# -----------------------------
# Canonical service deps
# -----------------------------

def get_jobs(request: Request) -> Any:
    """
    Canonical JobManager dependency.
    EXPECTS: providers.jobs
    """
    return get_providers(request).jobs


JobsDep = Annotated[Any, Depends(get_jobs)]


def get_genai(request: Request) -> Any:
    return get_providers(request).genai


GenAIDep = Annotated[Any, Depends(get_genai)]


def get_app_settings(request: Request) -> Any:
    return get_providers(request).settings


SettingsDep = Annotated[Any, Depends(get_app_settings)]

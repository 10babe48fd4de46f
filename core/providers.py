from __future__ import annotations

from fastapi import FastAPI, Request

from providers.factory import get_providers


def providers_from_request(request: Request):
    """
    Canonical provider accessor for ALL routers.

    Providers are attached once during app startup as request.app.state.providers.
    """
    try:
        return request.app.state.providers
    except Exception as exc:
        raise RuntimeError("Providers not initialized on app.state (startup/lifespan not executed).") from exc


def init_providers(app: FastAPI):
    """
    Canonical provider initialization.
    Called once during app startup/lifespan. Attaches Providers onto app.state.
    Keeps providers that were attached before startup (tests).
    """
    if getattr(app.state, "providers", None) is None:
        app.state.providers = get_providers()
    return app.state.providers

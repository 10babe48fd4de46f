# health/router.py
from fastapi import APIRouter

from core.deps import ProvidersDep

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    # Keep this super simple and always unauthenticated
    return {"ok": True}

@router.get("/health/genai")
async def health_genai(providers: ProvidersDep):
    """
    Verifies:
      - Gemini API is reachable with the configured key
      - configured video model is listed
    """
    settings = providers.settings
    video_model = settings.gemini.video_model

    list_models = getattr(providers.genai, "list_models", None)
    if list_models is None:
        return {"ok": True, "genaiReachable": None, "videoModelReady": None, "videoModel": video_model}

    try:
        models = await list_models()
    except Exception as e:
        return {
            "ok": False,
            "genaiReachable": False,
            "videoModelReady": False,
            "videoModel": video_model,
            "error": str(e),
        }

    names = [str(m).split("/")[-1] for m in models]
    return {
        "ok": True,
        "genaiReachable": True,
        "videoModelReady": video_model in names,
        "videoModel": video_model,
        "outstandingJobs": len(providers.jobs.registry),
        "knownModels": names[:25],  # keep response bounded
    }

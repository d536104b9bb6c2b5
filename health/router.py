# health/router.py
import logging

from fastapi import APIRouter, Request

from core.context import context_from_request

log = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    # Keep this super simple and always unauthenticated
    return {"ok": True}


@router.get("/health/config")
async def health_config(request: Request):
    """
    Verifies config.json can be loaded (and memoizes it on success).
    Failure detail goes to the log only.
    """
    provider = context_from_request(request).config_provider
    try:
        cfg = await provider.load()
    except Exception:
        log.exception("Config health check failed for %s", provider.source)
        return {"ok": False, "configLoaded": False}

    return {
        "ok": True,
        "configLoaded": True,
        "repo": f"{cfg.repo.owner}/{cfg.repo.repo}",
    }

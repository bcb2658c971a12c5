from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify

from ..config import load_settings
from ..services.raffles import get_entropy_source

bp = Blueprint("config", __name__)


def _get_public_config() -> Dict[str, Any]:
    settings = load_settings()
    limits = settings.limits
    payload: Dict[str, Any] = {
        "entropy_backend": settings.entropy.backend,
        "rpc_url": settings.entropy.rpc_url,
        "current_marker": None,
        "limits": {
            "minimum_ticket_price": str(limits.minimum_ticket_price),
            "max_tier_count": limits.max_tier_count,
            "default_pool_amount": str(limits.default_pool_amount),
            "default_ticket_price": str(limits.default_ticket_price),
            "default_tier_count": limits.default_tier_count,
            "fee_before_prizes": limits.fee_before_prizes,
        },
    }

    try:
        payload["current_marker"] = get_entropy_source().current_marker()
    except Exception as exc:  # pragma: no cover - swallow connectivity issues
        current_app.logger.warning("Unable to query entropy source: %s", exc)
    return payload


@bp.get("/config")
def get_config():
    return jsonify(_get_public_config())

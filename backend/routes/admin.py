from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..config import load_settings
from ..schemas import FillTiersRequest, RaffleCreateRequest, RaffleResponse
from .raffles import get_caller, raffle_service

bp = Blueprint("admin", __name__)


def _require_admin() -> bool:
    settings = load_settings()
    api_key = settings.admin_api_key
    if api_key:
        provided = request.headers.get("X-Admin-Token")
        if provided != api_key:
            return False
    return True


@bp.before_request
def verify_admin():
    if not _require_admin():
        return jsonify({"error": "unauthorized", "code": "Unauthorized"}), 401
    return None


@bp.get("/raffles")
def list_raffles():
    raffles = raffle_service.list_raffles()
    return jsonify([RaffleResponse(**raffle).model_dump() for raffle in raffles])


@bp.post("/raffles")
def create_raffle():
    payload = request.get_json(force=True, silent=True) or {}
    data = RaffleCreateRequest(**payload)
    administrator = get_caller()

    summary = raffle_service.create_raffle(
        administrator=administrator,
        organizer=data.organizer,
        fee_recipient=data.fee_recipient,
        fee_rate=data.fee_rate,
        pool_amount=data.pool_amount,
        ticket_price=data.ticket_price,
        tier_count=data.tier_count,
        fee_before_prizes=data.fee_before_prizes,
    )
    current_app.logger.info("Raffle %s configured by %s", summary["raffle_id"], administrator)
    return jsonify(RaffleResponse(**summary).model_dump()), 201


@bp.post("/raffles/<int:raffle_id>/tiers")
def fill_tiers(raffle_id: int):
    payload = request.get_json(force=True, silent=True) or {}
    data = FillTiersRequest(**payload)
    summary = raffle_service.fill_tiers(raffle_id, get_caller(), data.winner_counts, data.payouts)
    return jsonify(RaffleResponse(**summary).model_dump())


@bp.post("/raffles/<int:raffle_id>/terminate")
def terminate(raffle_id: int):
    caller = get_caller()
    summary = raffle_service.terminate(raffle_id, caller)
    current_app.logger.warning("Raffle %s terminated by %s", raffle_id, caller)
    return jsonify(RaffleResponse(**summary).model_dump())

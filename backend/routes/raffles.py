from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..schemas import RaffleResponse, TicketOwnerResponse, TicketPurchaseRequest, TicketPurchaseResponse, normalise_account
from ..services.raffles import RaffleService

bp = Blueprint("raffles", __name__)
raffle_service = RaffleService()


class MissingAccount(ValueError):
    pass


def get_caller() -> str:
    account = request.headers.get("X-Account")
    if not account:
        raise MissingAccount("X-Account header is required")
    return normalise_account(account)


@bp.get("/<int:raffle_id>")
def get_raffle(raffle_id: int):
    summary = raffle_service.get_raffle(raffle_id)
    return jsonify(RaffleResponse(**summary).model_dump())


@bp.post("/<int:raffle_id>/tickets")
def purchase_tickets(raffle_id: int):
    payload = request.get_json(force=True, silent=True) or {}
    data = TicketPurchaseRequest(**payload)
    buyer = get_caller()

    issued, summary = raffle_service.purchase_tickets(raffle_id, buyer, data.quantity, data.payment)
    response = TicketPurchaseResponse(
        raffle_id=raffle_id,
        tickets_issued=issued,
        current_ticket=summary["current_ticket"],
        status=summary["status"],
    )
    return jsonify(response.model_dump()), 201


@bp.get("/<int:raffle_id>/tickets/<int:number>")
def get_ticket(raffle_id: int, number: int):
    owner = raffle_service.get_ticket_owner(raffle_id, number)
    if owner is None:
        return jsonify({"error": "ticket not found"}), 404
    return jsonify(TicketOwnerResponse(raffle_id=raffle_id, ticket_number=number, owner=owner).model_dump())


@bp.get("/<int:raffle_id>/notifications")
def list_notifications(raffle_id: int):
    return jsonify(raffle_service.list_notifications(raffle_id))


@bp.get("/<int:raffle_id>/transfers")
def list_transfers(raffle_id: int):
    return jsonify(raffle_service.list_transfers(raffle_id))

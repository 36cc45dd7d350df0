"""Contract offer status machine.

An offer without any update is open. Each side of the room may only move the
offer along the edges it owns; the remaining states are terminal.
"""

from __future__ import annotations

from halogin.chat.exceptions import InvalidContractTransition
from halogin.chat.models import ContractStatus

CREATOR = "creator"
COMPANY = "company"

TRANSITIONS: dict[str | None, dict[str, str]] = {
    None: {
        ContractStatus.ACCEPTED_BY_CREATOR: CREATOR,
        ContractStatus.WITHDRAWN_BY_COMPANY: COMPANY,
    },
    ContractStatus.ACCEPTED_BY_CREATOR: {
        ContractStatus.CANCELLED_BY_CREATOR: CREATOR,
        ContractStatus.FINISHED_BY_CREATOR: CREATOR,
    },
    ContractStatus.FINISHED_BY_CREATOR: {
        ContractStatus.APPROVED_BY_COMPANY: COMPANY,
    },
}


def allowed_transitions(current: str | None, side: str) -> list[str]:
    return [
        str(status)
        for status, owner in TRANSITIONS.get(current, {}).items()
        if owner == side
    ]


def check_transition(current: str | None, new_status: str, side: str) -> None:
    owner = TRANSITIONS.get(current, {}).get(new_status)
    if owner is None:
        msg = f"Cannot move a contract from {current or 'open'} to {new_status}"
        raise InvalidContractTransition(msg)
    if owner != side:
        msg = f"Only the {owner} can move a contract to {new_status}"
        raise InvalidContractTransition(msg)

import pytest

from halogin.chat.contracts import COMPANY
from halogin.chat.contracts import CREATOR
from halogin.chat.contracts import allowed_transitions
from halogin.chat.contracts import check_transition
from halogin.chat.exceptions import InvalidContractTransition
from halogin.chat.models import ContractStatus


class TestAllowedTransitions:
    def test_open_offer(self):
        assert allowed_transitions(None, CREATOR) == [ContractStatus.ACCEPTED_BY_CREATOR]
        assert allowed_transitions(None, COMPANY) == [ContractStatus.WITHDRAWN_BY_COMPANY]

    def test_accepted_offer_belongs_to_creator(self):
        assert set(allowed_transitions(ContractStatus.ACCEPTED_BY_CREATOR, CREATOR)) == {
            ContractStatus.CANCELLED_BY_CREATOR,
            ContractStatus.FINISHED_BY_CREATOR,
        }
        assert allowed_transitions(ContractStatus.ACCEPTED_BY_CREATOR, COMPANY) == []

    @pytest.mark.parametrize(
        "terminal",
        [
            ContractStatus.WITHDRAWN_BY_COMPANY,
            ContractStatus.CANCELLED_BY_CREATOR,
            ContractStatus.APPROVED_BY_COMPANY,
        ],
    )
    def test_terminal_states(self, terminal):
        assert allowed_transitions(terminal, CREATOR) == []
        assert allowed_transitions(terminal, COMPANY) == []


class TestCheckTransition:
    def test_valid(self):
        check_transition(
            ContractStatus.FINISHED_BY_CREATOR,
            ContractStatus.APPROVED_BY_COMPANY,
            COMPANY,
        )

    def test_wrong_side(self):
        with pytest.raises(InvalidContractTransition, match="Only the creator"):
            check_transition(None, ContractStatus.ACCEPTED_BY_CREATOR, COMPANY)

    def test_skipping_a_step(self):
        with pytest.raises(InvalidContractTransition, match="from open"):
            check_transition(None, ContractStatus.APPROVED_BY_COMPANY, COMPANY)

    def test_plain_strings_are_accepted(self):
        check_transition("AcceptedByCreator", "FinishedByCreator", CREATOR)

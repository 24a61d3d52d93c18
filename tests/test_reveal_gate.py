# tests/test_reveal_gate.py
import unittest
import sys
import os
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reelsync.domain.errors import FailureReason
from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.session.entities.account_state import AccountState
from reelsync.domain.session.entities.outcome import Outcome, OutcomeSource, PENDING
from reelsync.domain.session.entities.spin_session import SessionSnapshot, SpinPhase, IDLE_SNAPSHOT
from reelsync.application.spin.popup_request import PopupRequest
from reelsync.application.spin.reveal_gate import RevealGate
from reelsync.infrastructure.config.engine_config import ProviderConfig


class StubOrchestrator:
    """Exposes just what the gate reads."""
    def __init__(self, account):
        self.account = account
        self.current = IDLE_SNAPSHOT

    def snapshot(self):
        return self.current


def snapshot_in(phase):
    return SessionSnapshot(session_id="s1", phase=phase, outcome=PENDING, revealed=False)


class TestRevealGate(unittest.TestCase):
    """Test cases for the spin button projection."""

    def setUp(self):
        self.account = AccountState(balance=Decimal("10"))
        self.orchestrator = StubOrchestrator(self.account)
        self.gate = RevealGate(self.orchestrator, ProviderConfig())

    def test_idle_labels_follow_cost(self):
        self.assertTrue(self.gate.can_spin())
        self.assertEqual(self.gate.status_label(), "SPIN (0.1 MON)")

        self.account.has_discount = True
        self.account.discounted_spins = 2
        self.assertEqual(self.gate.status_label(), "SPIN (0.01 MON)")

        self.account.free_spins = 3
        self.assertEqual(self.gate.status_label(), "SPIN (Free)")

    def test_labels_per_phase(self):
        expected = {
            SpinPhase.ANIMATING: "SPINNING...",
            SpinPhase.AWAITING_OUTCOME: "PROCESSING...",
            SpinPhase.READY_TO_REVEAL: "DISMISS POPUP FIRST",
            SpinPhase.REVEALING: "DISMISS POPUP FIRST",
            SpinPhase.RECOVERING: "RECOVERING...",
        }
        for phase, label in expected.items():
            with self.subTest(phase=phase):
                self.orchestrator.current = snapshot_in(phase)
                self.assertEqual(self.gate.status_label(), label)
                self.assertFalse(self.gate.can_spin())


class TestPopupRequest(unittest.TestCase):
    """Test cases for the popup text."""

    def make_outcome(self, **kwargs):
        values = dict(combination=(Symbol.APPLE, Symbol.APPLE, Symbol.APPLE),
                      monetary_reward=Decimal("0"), bonus_spins=0, rare_award_granted=False,
                      source=OutcomeSource.REMOTE, reference="0xfeed")
        values.update(kwargs)
        return Outcome(**values)

    def test_remote_win(self):
        outcome = self.make_outcome(monetary_reward=Decimal("0.3"), bonus_spins=3)
        request = PopupRequest.from_outcome("s1", outcome, "https://explorer.example/")
        self.assertEqual(request.reward_lines, ("Won: 0.3 MON", "Won: 3 Free Spins"))
        self.assertEqual(request.explorer_link, "https://explorer.example/tx/0xfeed")
        self.assertIsNone(request.fallback_label)
        self.assertEqual(request.title, "Spin Result")

    def test_rare_award_and_discount(self):
        outcome = self.make_outcome(rare_award_granted=True, discount_granted=True)
        request = PopupRequest.from_outcome("s1", outcome)
        self.assertEqual(request.reward_lines, ("LEGENDARY AWARD WON!", "Discount unlocked"))
        self.assertIsNone(request.explorer_link)

    def test_no_reward(self):
        request = PopupRequest.from_outcome("s1", self.make_outcome(), "https://explorer.example")
        self.assertEqual(request.reward_lines, ("No reward this time",))

    def test_fallback_label(self):
        outcome = self.make_outcome(source=OutcomeSource.LOCAL, reference="local",
                                    fallback_reason=FailureReason.USER_REJECTED)
        request = PopupRequest.from_outcome("s1", outcome, "https://explorer.example")
        self.assertEqual(request.fallback_label, "Offline result: transaction rejected in wallet")
        self.assertIsNone(request.explorer_link)

    def test_currency(self):
        outcome = self.make_outcome(monetary_reward=Decimal("1.5"))
        request = PopupRequest.from_outcome("s1", outcome, currency="ETH")
        self.assertEqual(request.reward_lines, ("Won: 1.5 ETH",))


if __name__ == '__main__':
    unittest.main()

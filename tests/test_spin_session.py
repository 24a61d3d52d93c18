# tests/test_spin_session.py
import unittest
import sys
import os
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reelsync.domain.errors import FailureReason, OutcomeFailure, SessionInvariantError
from reelsync.domain.machine.entities.reel import ReelState
from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.session.entities.account_state import AccountState
from reelsync.domain.session.entities.outcome import (
    Outcome, OutcomeSource, PENDING, PendingOutcome, FailedOutcome,
)
from reelsync.domain.session.entities.spin_session import SpinSession, SpinPhase
from reelsync.domain.session.factories.session_factory import SpinSessionFactory


def make_outcome(source=OutcomeSource.REMOTE, reference="0xabc", reward="0.5", bonus_spins=0,
                 **kwargs):
    return Outcome(
        combination=(Symbol.CHERRY, Symbol.CHERRY, Symbol.CHERRY),
        monetary_reward=Decimal(reward),
        bonus_spins=bonus_spins,
        rare_award_granted=False,
        source=source,
        reference=reference,
        **kwargs
    )


def make_reels():
    return [ReelState(index=i, stop_target=t) for i, t in enumerate((30, 32, 35))]


class TestOutcome(unittest.TestCase):
    """Test cases for the Outcome value object."""

    def test_valid_outcome(self):
        outcome = make_outcome(bonus_spins=2)
        self.assertEqual(outcome.monetary_reward, Decimal("0.5"))
        self.assertTrue(outcome.is_win)
        self.assertFalse(outcome.is_fallback)

    def test_combination_normalized_to_tuple(self):
        outcome = Outcome([Symbol.APPLE, Symbol.LEMON, Symbol.APPLE], Decimal("0"), 0, False,
                          OutcomeSource.LOCAL, "local")
        self.assertEqual(outcome.combination, (Symbol.APPLE, Symbol.LEMON, Symbol.APPLE))
        self.assertFalse(outcome.is_win)

    def test_invalid_outcomes(self):
        with self.assertRaises(ValueError):
            Outcome((Symbol.APPLE, Symbol.APPLE), Decimal("0"), 0, False, OutcomeSource.LOCAL, "local")
        with self.assertRaises(ValueError):
            Outcome(("apple", "apple", "apple"), Decimal("0"), 0, False, OutcomeSource.LOCAL, "local")
        with self.assertRaises(ValueError):
            make_outcome(reward="-1")
        with self.assertRaises(ValueError):
            make_outcome(bonus_spins=-1)
        with self.assertRaises(ValueError):
            make_outcome(reference="")
        with self.assertRaises(ValueError):
            make_outcome(fallback_reason=FailureReason.OUTCOME_TIMEOUT)
        with self.assertRaises(ValueError):
            make_outcome(spin_cost=Decimal("-0.1"))

    def test_as_fallback(self):
        local = make_outcome(source=OutcomeSource.LOCAL, reference="local")
        fallback = local.as_fallback(FailureReason.NETWORK_CONGESTED)
        self.assertTrue(fallback.is_fallback)
        self.assertEqual(fallback.combination, local.combination)
        self.assertIsNone(local.fallback_reason)
        with self.assertRaises(ValueError):
            make_outcome().as_fallback(FailureReason.NETWORK_CONGESTED)

    def test_to_dict(self):
        data = make_outcome().to_dict()
        self.assertEqual(data["combination"], ["cherry", "cherry", "cherry"])
        self.assertEqual(data["monetary_reward"], "0.5")
        self.assertEqual(data["source"], "remote")
        self.assertEqual(data["spin_cost"], "0")
        self.assertIsNone(data["fallback_reason"])

    def test_pending_is_singleton(self):
        self.assertIs(PendingOutcome(), PENDING)
        self.assertEqual(repr(PENDING), "PENDING")

    def test_outcome_failure_str(self):
        self.assertEqual(str(OutcomeFailure(FailureReason.USER_REJECTED, "declined")),
                         "user_rejected: declined")
        self.assertEqual(str(OutcomeFailure(FailureReason.OUTCOME_TIMEOUT)), "outcome_timeout")


class TestSpinSession(unittest.TestCase):
    """Test cases for SpinSession invariants."""

    def setUp(self):
        self.session = SpinSession("session-1", make_reels())

    def test_initial_state(self):
        self.assertEqual(self.session.phase, SpinPhase.ANIMATING)
        self.assertIs(self.session.outcome, PENDING)
        self.assertTrue(self.session.outcome_pending)
        self.assertFalse(self.session.revealed)
        self.assertFalse(self.session.ready_to_reveal)

    def test_requires_three_reels(self):
        with self.assertRaises(SessionInvariantError):
            SpinSession("bad", make_reels()[:2])

    def test_outcome_written_once(self):
        first = make_outcome()
        self.session.resolve(first)
        with self.assertRaises(SessionInvariantError):
            self.session.resolve(make_outcome(reference="0xdef"))
        self.assertIs(self.session.outcome, first)
        with self.assertRaises(SessionInvariantError):
            self.session.fail("too late")

    def test_resolve_with_failure(self):
        failure = OutcomeFailure(FailureReason.OUTCOME_TIMEOUT)
        self.session.resolve(make_outcome(source=OutcomeSource.LOCAL, reference="local"), failure)
        self.assertEqual(self.session.failure, failure)

    def test_fail(self):
        self.session.fail("no fallback")
        self.assertEqual(self.session.outcome, FailedOutcome("no fallback"))
        self.assertFalse(self.session.outcome_pending)
        self.assertFalse(self.session.outcome_resolved)

    def test_reveal_once(self):
        self.session.mark_revealed()
        with self.assertRaises(SessionInvariantError):
            self.session.mark_revealed()

    def test_mark_all_reels_stopped_requires_stopped_reels(self):
        with self.assertRaises(SessionInvariantError):
            self.session.mark_all_reels_stopped()
        for reel in self.session.animation:
            reel.stopped = True
        self.session.mark_all_reels_stopped()
        self.session.resolve(make_outcome())
        self.assertTrue(self.session.ready_to_reveal)

    def test_snapshot_is_a_copy(self):
        snapshot = self.session.snapshot()
        self.session.animation[0].position = 12.0
        self.session.transition(SpinPhase.AWAITING_OUTCOME)
        self.assertEqual(snapshot.phase, SpinPhase.ANIMATING)
        self.assertEqual(snapshot.reels[0].position, 0.0)
        self.assertEqual(snapshot.reels[2].stop_target, 35)
        self.assertFalse(snapshot.outcome_resolved)


class TestSpinSessionFactory(unittest.TestCase):

    def test_unique_ids(self):
        factory = SpinSessionFactory(id_prefix="spin-")
        first = factory.create_session(make_reels())
        second = factory.create_session(make_reels())
        self.assertNotEqual(first.id, second.id)
        self.assertTrue(first.id.startswith("spin-"))
        self.assertEqual(factory.created, 2)

    def test_explicit_id(self):
        session = SpinSessionFactory().create_session(make_reels(), session_id="fixed")
        self.assertEqual(session.id, "fixed")


class TestAccountState(unittest.TestCase):
    """Test cases for the observed account view."""

    def setUp(self):
        self.standard = Decimal("0.1")
        self.discounted = Decimal("0.01")

    def test_spin_cost_priority(self):
        account = AccountState(balance=Decimal("10"))
        self.assertEqual(account.spin_cost(self.standard, self.discounted), Decimal("0.1"))
        self.assertEqual(account.cost_label(self.standard, self.discounted), "0.1 MON")

        account.has_discount = True
        account.discounted_spins = 3
        self.assertEqual(account.spin_cost(self.standard, self.discounted), Decimal("0.01"))
        self.assertEqual(account.cost_label(self.standard, self.discounted), "0.01 MON")

        account.free_spins = 1
        self.assertEqual(account.spin_cost(self.standard, self.discounted), Decimal("0"))
        self.assertEqual(account.cost_label(self.standard, self.discounted), "Free")

    def test_discount_without_spins_left(self):
        account = AccountState(has_discount=True, discounted_spins=0)
        self.assertEqual(account.spin_cost(self.standard, self.discounted), self.standard)

    def test_apply_snapshot_keeps_missing_fields(self):
        account = AccountState(balance=Decimal("5"), free_spins=2)
        account.apply_snapshot({"balance": "7.5", "has_discount": True})
        self.assertEqual(account.balance, Decimal("7.5"))
        self.assertEqual(account.free_spins, 2)
        self.assertTrue(account.has_discount)
        self.assertEqual(account.refresh_count, 1)

    def test_reconcile_late_outcome_is_idempotent(self):
        account = AccountState(balance=Decimal("1"))
        outcome = make_outcome(bonus_spins=2, discount_granted=True)
        self.assertTrue(account.reconcile_late_outcome(outcome))
        self.assertFalse(account.reconcile_late_outcome(outcome))
        self.assertEqual(account.balance, Decimal("1.5"))
        self.assertEqual(account.free_spins, 2)
        self.assertTrue(account.has_discount)
        self.assertEqual(account.reconciled_references, ["0xabc"])

    def test_reconcile_debits_the_charged_spin(self):
        account = AccountState(balance=Decimal("10"))
        account.reconcile_late_outcome(make_outcome(spin_cost=Decimal("0.1")))
        self.assertEqual(account.balance, Decimal("10.4"))

        account = AccountState(balance=Decimal("10"), discounted_spins=1, has_discount=True)
        account.reconcile_late_outcome(make_outcome(reward="0", spin_cost=Decimal("0.01"),
                                                    discount_applied=True))
        self.assertEqual(account.balance, Decimal("9.99"))
        self.assertEqual(account.discounted_spins, 0)
        self.assertFalse(account.has_discount)

    def test_reconcile_consumes_a_free_spin(self):
        account = AccountState(balance=Decimal("10"), free_spins=2)
        account.reconcile_late_outcome(make_outcome(bonus_spins=1))
        self.assertEqual(account.balance, Decimal("10.5"))
        self.assertEqual(account.free_spins, 2)

    def test_reconcile_ignores_local_outcomes(self):
        account = AccountState()
        self.assertFalse(account.reconcile_late_outcome(
            make_outcome(source=OutcomeSource.LOCAL, reference="local")))
        self.assertEqual(account.balance, Decimal("0"))

    def test_to_dict(self):
        data = AccountState(balance=Decimal("2")).to_dict()
        self.assertEqual(data["balance"], "2")
        self.assertEqual(data["reconciled_references"], [])


if __name__ == '__main__':
    unittest.main()

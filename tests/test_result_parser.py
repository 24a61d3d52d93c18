# tests/test_result_parser.py
import unittest
import sys
import os
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.session.entities.outcome import OutcomeSource
from reelsync.application.outcome.ledger_client import FeeParameters, MalformedReceiptError
from reelsync.application.outcome.result_parser import (
    parse_spin_receipt, parse_combination, wei_to_ether, find_spin_result,
)


def make_receipt(**args):
    spin_args = {
        "combination": "cherry,apple,cherry",
        "monReward": 2 * 10 ** 17,
        "extraSpins": 1,
        "nftMinted": False,
        "newDiscountGranted": False,
    }
    spin_args.update(args)
    return {
        "hash": "0xfeed",
        "logs": [
            {"event": "Transfer", "args": {}},
            {"event": "SpinResult", "args": spin_args},
        ],
    }


class TestSpinReceiptParsing(unittest.TestCase):
    """Test cases for turning ledger receipts into outcomes."""

    def test_parse_receipt(self):
        outcome = parse_spin_receipt(make_receipt())
        self.assertEqual(outcome.combination, (Symbol.CHERRY, Symbol.APPLE, Symbol.CHERRY))
        self.assertEqual(outcome.monetary_reward, Decimal("0.2"))
        self.assertEqual(outcome.bonus_spins, 1)
        self.assertEqual(outcome.source, OutcomeSource.REMOTE)
        self.assertEqual(outcome.reference, "0xfeed")
        self.assertFalse(outcome.rare_award_granted)

    def test_rare_award_and_discount_flags(self):
        outcome = parse_spin_receipt(make_receipt(nftMinted=True, newDiscountGranted=True))
        self.assertTrue(outcome.rare_award_granted)
        self.assertTrue(outcome.discount_granted)
        self.assertFalse(outcome.discount_applied)
        self.assertTrue(parse_spin_receipt(make_receipt(discountApplied=True)).discount_applied)

    def test_missing_spin_result(self):
        receipt = make_receipt()
        receipt["logs"] = [{"event": "Transfer", "args": {}}]
        self.assertIsNone(find_spin_result(receipt))
        with self.assertRaises(MalformedReceiptError):
            parse_spin_receipt(receipt)

    def test_missing_hash(self):
        receipt = make_receipt()
        del receipt["hash"]
        with self.assertRaises(MalformedReceiptError):
            parse_spin_receipt(receipt)

    def test_not_a_mapping(self):
        with self.assertRaises(MalformedReceiptError):
            parse_spin_receipt(None)

    def test_incomplete_record(self):
        receipt = make_receipt()
        del receipt["logs"][1]["args"]["monReward"]
        with self.assertRaises(MalformedReceiptError):
            parse_spin_receipt(receipt)

    def test_unreadable_values(self):
        for bad in ({"combination": "cherry,apple"},
                    {"combination": "cherry,apple,grape"},
                    {"combination": 7},
                    {"monReward": "lots"},
                    {"monReward": -5},
                    {"extraSpins": "many"},
                    {"extraSpins": -1}):
            with self.subTest(args=bad):
                with self.assertRaises(MalformedReceiptError):
                    parse_spin_receipt(make_receipt(**bad))

    def test_combination_formats(self):
        expected = [Symbol.LEMON, Symbol.BANANA, Symbol.APPLE]
        self.assertEqual(parse_combination("lemon|banana|apple"), expected)
        self.assertEqual(parse_combination("Lemon Banana Apple"), expected)
        self.assertEqual(parse_combination(["lemon", "banana", "apple"]), expected)

    def test_wei_to_ether(self):
        self.assertEqual(wei_to_ether(10 ** 18), Decimal("1"))
        self.assertEqual(wei_to_ether("10000000000000000"), Decimal("0.01"))
        self.assertEqual(wei_to_ether(0), Decimal("0"))


class TestFeeParameters(unittest.TestCase):

    def test_escalate(self):
        fee = FeeParameters(gas_limit=200000, max_fee_per_gas=100, max_priority_fee_per_gas=10)
        escalated = fee.escalate(1.25)
        self.assertEqual(escalated.gas_limit, 200000)
        self.assertEqual(escalated.max_fee_per_gas, 125)
        self.assertEqual(escalated.max_priority_fee_per_gas, 12)

    def test_from_dict(self):
        fee = FeeParameters.from_dict({"gas_limit": 1, "max_fee_per_gas": 2, "max_priority_fee_per_gas": 3})
        self.assertEqual(fee, FeeParameters(1, 2, 3))


if __name__ == '__main__':
    unittest.main()

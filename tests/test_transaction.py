from __future__ import annotations

import unittest

from suiarb.trading.transaction import TransactionBlock


class TransactionBlockTests(unittest.TestCase):
    def test_identical_object_inputs_are_shared(self) -> None:
        tx = TransactionBlock()
        first = tx.object("0xabc")
        second = tx.object("0xabc")
        amount = tx.pure(5, type_tag="u64")
        again = tx.pure(5, type_tag="u64")

        self.assertEqual(first, second)
        self.assertNotEqual(amount, again)
        self.assertEqual(len(tx.inputs), 3)

    def test_merge_without_sources_adds_no_command(self) -> None:
        tx = TransactionBlock()
        tx.merge_coins(tx.object("0x1"), [])
        self.assertTrue(tx.is_empty)

    def test_move_call_serialises_arguments(self) -> None:
        tx = TransactionBlock()
        [coin] = tx.split_coins(tx.gas, [tx.pure(10, type_tag="u64")])
        vector = tx.make_move_vec([coin], type_tag="0x2::coin::Coin<0x2::sui::SUI>")
        tx.move_call(target="0x1::m::f", type_arguments=["0x2::sui::SUI"], arguments=[vector, tx.object("0x6")])
        tx.set_gas_budget(500_000_000)

        payload = tx.to_dict()

        self.assertEqual(payload["gasBudget"], 500_000_000)
        self.assertEqual(payload["commands"][1]["elements"], [{"kind": "NestedResult", "index": 0, "resultIndex": 0}])
        self.assertEqual(
            payload["commands"][2],
            {
                "kind": "MoveCall",
                "target": "0x1::m::f",
                "typeArguments": ["0x2::sui::SUI"],
                "arguments": [{"kind": "Result", "index": 1}, {"kind": "Input", "index": 1}],
            },
        )


if __name__ == "__main__":
    unittest.main()

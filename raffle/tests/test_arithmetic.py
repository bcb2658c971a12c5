import unittest

from raffle import arithmetic
from raffle.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero


class SafeArithmeticTests(unittest.TestCase):
    def test_add_overflow_at_word_boundary(self) -> None:
        self.assertEqual(arithmetic.add(arithmetic.UINT256_MAX - 1, 1), arithmetic.UINT256_MAX)
        with self.assertRaises(ArithmeticOverflow):
            arithmetic.add(arithmetic.UINT256_MAX, 1)

    def test_sub_underflow(self) -> None:
        self.assertEqual(arithmetic.sub(10, 10), 0)
        with self.assertRaises(ArithmeticUnderflow):
            arithmetic.sub(3, 4)

    def test_mul_overflow_detected_by_back_division(self) -> None:
        self.assertEqual(arithmetic.mul(0, arithmetic.UINT256_MAX), 0)
        self.assertEqual(arithmetic.mul(2**128, 2**127), 2**255)
        with self.assertRaises(ArithmeticOverflow):
            arithmetic.mul(2**128, 2**128)

    def test_div_by_zero(self) -> None:
        self.assertEqual(arithmetic.div(7, 2), 3)
        with self.assertRaises(DivisionByZero):
            arithmetic.div(7, 0)
        with self.assertRaises(ZeroDivisionError):
            arithmetic.div(1, 0)

    def test_ceil_div(self) -> None:
        self.assertEqual(arithmetic.ceil_div(1000, 20), 50)
        self.assertEqual(arithmetic.ceil_div(1001, 20), 51)
        self.assertEqual(arithmetic.ceil_div(1, 20), 1)

    def test_as_uint_rejects_negative_and_non_int(self) -> None:
        with self.assertRaises(ArithmeticUnderflow):
            arithmetic.as_uint(-1)
        with self.assertRaises(TypeError):
            arithmetic.as_uint(1.5)
        with self.assertRaises(TypeError):
            arithmetic.as_uint(True)


if __name__ == "__main__":
    unittest.main()

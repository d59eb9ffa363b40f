# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for tensor construction, indexing and broadcasting."""

import unittest

import numpy as np

from fxpoint import (
    Q7,
    Format,
    InvalidFormatError,
    PreconditionError,
    ShapeMismatchError,
    Tensor,
    Value,
    from_int,
    reformat,
)

Q8_8 = Format(16, 8, True)


class TestConstruction(unittest.TestCase):
    def test_index_is_first_dimension_fastest(self):
        t = Tensor.from_raw(Format(8, 0, True), (2, 3), range(6))
        self.assertEqual(t.strides, (1, 2))
        self.assertEqual(t.get(1, 0).raw, 1)
        self.assertEqual(t.get(0, 1).raw, 2)
        self.assertEqual(t.get(1, 2).raw, 5)
        self.assertEqual(t[1, 2].raw, 5)
        self.assertEqual([v.raw for v in t], list(range(6)))

        raws = t.raw_array()
        doubles = t.to_doubles()
        for i in range(2):
            for j in range(3):
                self.assertEqual(raws[i, j], t.get(i, j).raw)
                self.assertEqual(doubles[i, j], t.get(i, j).to_double())

    def test_from_raw_accepts_shaped_array(self):
        flat = Tensor.from_raw(Format(8, 0, True), (2, 3), range(6))
        shaped = Tensor.from_raw(Format(8, 0, True), (2, 3), np.array([[0, 2, 4], [1, 3, 5]]))
        self.assertEqual(flat, shaped)

    def test_from_raw_wraps(self):
        t = Tensor.from_raw(Format(8, 0, False), (2,), [300, -1])
        self.assertEqual([v.raw for v in t], [44, 255])

    def test_broadcast_replicates_one_scalar(self):
        t = Tensor.broadcast((2, 2), from_int(3))
        self.assertEqual(t.format, from_int(3).format)
        self.assertEqual(t.size, 4)
        self.assertTrue(all(v.raw == 3 for v in t))

    def test_from_values_concatenates(self):
        values = [Value.from_raw(Q8_8, r) for r in (256, -640, 64)]
        t = Tensor.from_values((1, 3), values)
        self.assertEqual(t.shape, (1, 3))
        np.testing.assert_array_equal(t.to_doubles(), [[1.0, -2.5, 0.25]])

    def test_from_values_validation(self):
        values = [Value.from_raw(Q8_8, r) for r in (1, 2, 3)]
        with self.assertRaises(ShapeMismatchError):
            Tensor.from_values((2, 2), values)
        with self.assertRaises(InvalidFormatError):
            Tensor.from_values((3,), values[:2] + [Value.from_raw(Q7, 3)])

    def test_shape_validation(self):
        with self.assertRaises(InvalidFormatError):
            Tensor.zeros(Q8_8, (2, 0))
        with self.assertRaises(ShapeMismatchError):
            Tensor.from_raw(Q8_8, (2, 2), [1, 2, 3])

    def test_zero_dimensional(self):
        t = Tensor.zeros(Q8_8, ())
        self.assertEqual(t.size, 1)
        self.assertEqual(t.ndim, 0)
        self.assertEqual(t.get().raw, 0)
        t.set(value=from_int(1))
        self.assertEqual(t.to_doubles().shape, ())
        self.assertEqual(float(t.to_doubles()), 1.0)


class TestIndexing(unittest.TestCase):
    def test_set_reformats_into_tensor_format(self):
        t = Tensor.zeros(Format(8, 0, True), (2, 3))
        t[0, 1] = Value.from_raw(Format(8, 1, True), 7)   # 3.5
        t.set(1, 1, value=9)
        self.assertEqual(t.get(0, 1).raw, 3)
        self.assertEqual(t.get(1, 1).raw, 9)
        self.assertEqual(t.get(0, 0).raw, 0)

    def test_get_returns_a_copy(self):
        t = Tensor.zeros(Q8_8, (2,))
        v = t[0]
        v.increment()
        self.assertEqual(t[0].raw, 0)

    def test_copy_is_independent(self):
        t = Tensor.from_raw(Format(8, 0, False), (2,), [1, 2])
        dup = t.copy()
        self.assertEqual(dup, t)
        dup.increment()
        self.assertEqual([v.raw for v in t], [1, 2])
        self.assertEqual([v.raw for v in dup], [2, 3])

    def test_to_floats(self):
        t = Tensor.from_raw(Q8_8, (2, 1), [384, -64])
        out = t.to_floats()
        self.assertEqual(out.dtype, np.float32)
        self.assertEqual(out.shape, (2, 1))
        np.testing.assert_array_equal(out, np.array([[1.5], [-0.25]], dtype=np.float32))

    def test_bad_indices(self):
        t = Tensor.zeros(Q8_8, (2, 3))
        with self.assertRaises(IndexError):
            t.get(2, 0)
        with self.assertRaises(IndexError):
            t.get(0, -1)
        with self.assertRaises(IndexError):
            t.get(0)
        with self.assertRaises(TypeError):
            t[0, 0] = 1.5


class TestBroadcasting(unittest.TestCase):
    def test_tensor_times_scalar_widens(self):
        t = Tensor.from_floats(Q8_8, (1, 3), [1.0, -2.5, 0.25])
        out = t * from_int(2)
        self.assertEqual(out.shape, (1, 3))
        self.assertEqual(out.format, Format(18, 8, True))
        self.assertEqual(out.format.storage_bits, 32)
        np.testing.assert_array_equal(out.to_doubles(), [[2.0, -5.0, 0.5]])

        reflected = from_int(2) * t
        np.testing.assert_array_equal(reflected.to_doubles(), [[2.0, -5.0, 0.5]])

    def test_tensor_plus_scalar(self):
        fmt = Format(8, 3, False)
        t = Tensor.from_raw(fmt, (3,), [250, 8, 0])
        out = t + Value.from_raw(fmt, 16)
        self.assertEqual([v.raw for v in out], [10, 24, 16])
        self.assertEqual(out.format, fmt)

    def test_scalar_on_the_left_sets_the_format(self):
        t = Tensor.from_floats(Format(8, 4, True), (2,), [0.5, -1.0])
        out = Value.from_raw(Q8_8, 256) + t
        self.assertEqual(out.format, Q8_8)
        np.testing.assert_array_equal(out.to_doubles(), [1.5, 0.0])

        out = Value.from_raw(Q8_8, 256) - t
        np.testing.assert_array_equal(out.to_doubles(), [0.5, 2.0])

        out = 1 + t
        self.assertEqual(out.format, Format(1, 0, False))

    def test_single_element_tensor_is_unwrapped(self):
        one = Tensor.from_floats(Q8_8, (1, 1), [1.0])
        big = Tensor.from_floats(Q8_8, (2, 2), [0.5] * 4)
        for out in (one + big, big + one):
            self.assertEqual(out.shape, (2, 2))
            np.testing.assert_array_equal(out.to_doubles(), np.full((2, 2), 1.5))

    def test_equal_shapes_pair_element_wise(self):
        a = Tensor.from_floats(Q8_8, (2, 2), [1.0, 2.0, 3.0, 4.0])
        b = Tensor.from_floats(Format(8, 4, True), (2, 2), [0.5, -0.5, 1.5, -1.5])
        np.testing.assert_array_equal((a + b).to_doubles().reshape(-1, order="F"), [1.5, 1.5, 4.5, 2.5])
        np.testing.assert_array_equal((a - b).to_doubles().reshape(-1, order="F"), [0.5, 2.5, 1.5, 5.5])
        product = a * b
        self.assertEqual(product.format, Format(23, 12, True))
        np.testing.assert_array_equal(product.to_doubles().reshape(-1, order="F"), [0.5, -1.0, 4.5, -6.0])

    def test_shape_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            Tensor.zeros(Q8_8, (2, 3)) + Tensor.zeros(Q8_8, (3, 2))
        with self.assertRaises(ShapeMismatchError):
            Tensor.zeros(Q8_8, (2,)) * Tensor.zeros(Q8_8, (3,))

    def test_unsupported_operand(self):
        with self.assertRaises(TypeError):
            Tensor.zeros(Q8_8, (2,)) + 1.5

    def test_compound_assignment(self):
        a = Tensor.from_floats(Q8_8, (2,), [1.0, 2.0])
        alias = a
        a += Tensor.from_floats(Q8_8, (2,), [0.5, 0.5])
        a -= 1
        a += Tensor.from_floats(Q8_8, (1,), [0.25])
        self.assertIs(a, alias)
        np.testing.assert_array_equal(a.to_doubles(), [0.75, 1.75])

        one = Tensor.zeros(Q8_8, (1,))
        with self.assertRaises(ShapeMismatchError):
            one += Tensor.zeros(Q8_8, (3,))

    def test_compound_assignment_keeps_value_type(self):
        v = Value.from_raw(Q8_8, 256)
        t = Tensor.from_floats(Q8_8, (2,), [0.5, 1.0])
        with self.assertRaises(TypeError):
            v += t
        with self.assertRaises(TypeError):
            v -= t
        self.assertIsInstance(v, Value)
        self.assertEqual(v.raw, 256)
        np.testing.assert_array_equal((v + t).to_doubles(), [1.5, 2.0])


class TestElementWiseUnary(unittest.TestCase):
    def test_negate(self):
        t = Tensor.from_raw(Format(8, 0, False), (2,), [3, 200])
        out = -t
        self.assertEqual(out.format, Format(9, 0, True))
        self.assertEqual([v.raw for v in out], [-3, -200])

        lits = -Tensor.broadcast((2,), from_int(3))
        np.testing.assert_array_equal(lits.to_doubles(), [-3.0, -3.0])
        self.assertEqual(-lits, Tensor.from_raw(Format(3, 0, True), (2,), [3, 3]))

        with self.assertRaises(PreconditionError):
            -Tensor.from_raw(Format(64, 0, False), (2,), [3, 2 ** 63])

    def test_increment_and_shift(self):
        t = Tensor.from_raw(Format(8, 0, False), (3,), [0, 1, 255])
        t.increment()
        self.assertEqual([v.raw for v in t], [1, 2, 0])
        self.assertEqual([v.raw for v in (t << 2)], [4, 8, 0])
        self.assertEqual([v.raw for v in (t >> 1)], [0, 1, 0])
        t.decrement()
        self.assertEqual([v.raw for v in t], [0, 1, 255])

    def test_rescale(self):
        t = Tensor.from_raw(Q7, (2,), [-128, 64])
        out = t.rescale()
        self.assertEqual([v.raw for v in out], [0, 192])
        self.assertEqual(out.rescale(), t)

    def test_reformat(self):
        t = Tensor.from_floats(Q8_8, (2,), [1.5, -2.25])
        fmt = Format(8, 2, True)
        once = reformat(t, fmt)
        np.testing.assert_array_equal(once.to_doubles(), [1.5, -2.25])
        self.assertEqual(reformat(once, fmt), once)
        with self.assertRaises(PreconditionError):
            t.reformat_checked(Format(8, 0, True))


if __name__ == "__main__":
    unittest.main()

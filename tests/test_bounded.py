import unittest

from zkwebauthn.bounded import to_bounded_vec
from zkwebauthn.errors import OversizedFieldError


class TestBoundedVec(unittest.TestCase):
    def test_source_bytes_are_kept_and_rest_is_zero(self) -> None:
        for data in (b"", b"\x01", bytes(range(1, 16)), b"\xff" * 16):
            with self.subTest(length=len(data)):
                vec = to_bounded_vec("field", data, 16)
                self.assertEqual(vec.len, len(data))
                self.assertEqual(len(vec.storage), 16)
                self.assertEqual(bytes(vec.storage[: len(data)]), data)
                self.assertTrue(all(value == 0 for value in vec.storage[len(data):]))
                self.assertEqual(vec.to_bytes(), data)

    def test_oversized_input_is_rejected(self) -> None:
        with self.assertRaises(OversizedFieldError) as ctx:
            to_bounded_vec("signature", bytes(1025), 1024)
        self.assertEqual(ctx.exception.field, "signature")
        self.assertEqual(ctx.exception.length, 1025)
        self.assertEqual(ctx.exception.max_len, 1024)
        self.assertIn("signature", str(ctx.exception))

    def test_missing_input_encodes_as_empty(self) -> None:
        vec = to_bounded_vec("userHandle", None, 1023)
        self.assertEqual(vec.len, 0)
        self.assertEqual(vec.storage, (0,) * 1023)

    def test_accepts_views_and_int_sequences(self) -> None:
        self.assertEqual(to_bounded_vec("a", memoryview(b"\x05\x06"), 4).storage, (5, 6, 0, 0))
        self.assertEqual(to_bounded_vec("a", bytearray(b"\x07"), 2).storage, (7, 0))
        self.assertEqual(to_bounded_vec("a", [1, 2, 3], 3).len, 3)

    def test_exact_capacity_fits(self) -> None:
        vec = to_bounded_vec("a", b"\x01" * 8, 8)
        self.assertEqual(vec.len, 8)
        self.assertEqual(vec.to_dict(), {"storage": [1] * 8, "len": 8})


if __name__ == "__main__":
    unittest.main()

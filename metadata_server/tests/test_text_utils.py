import unittest

from metadata_server.text_utils import sanitize_text


class SanitizeTextTests(unittest.TestCase):
    def test_short_text_is_unchanged(self) -> None:
        self.assertEqual(sanitize_text("Build broke", 200), "Build broke")
        self.assertEqual(sanitize_text("x" * 200, 200), "x" * 200)

    def test_long_text_without_newline_is_hard_cut(self) -> None:
        result = sanitize_text("a" * 250, 200)
        self.assertEqual(len(result), 200)
        self.assertEqual(result, "a" * 197 + "...")

    def test_long_text_is_cut_after_last_newline(self) -> None:
        text = "first line\nsecond line\n" + "z" * 300
        self.assertEqual(sanitize_text(text, 200), "first line\nsecond line\n...")

    def test_newline_past_the_budget_is_ignored(self) -> None:
        text = "y" * 198 + "\n" + "tail" * 10
        result = sanitize_text(text, 200)
        self.assertLessEqual(len(result), 200)
        self.assertEqual(result, "y" * 197 + "...")

    def test_limit_shorter_than_ellipsis_is_still_respected(self) -> None:
        self.assertEqual(sanitize_text("abcdef", 2), "ab")
        self.assertEqual(sanitize_text("abcdef", 0), "")
        self.assertEqual(sanitize_text("abcdef", 3), "...")

    def test_sanitizing_twice_is_stable(self) -> None:
        for text in ("q" * 1500, "line\n" * 400, "short"):
            once = sanitize_text(text, 1000)
            self.assertEqual(sanitize_text(once, 1000), once)
            self.assertLessEqual(len(once), 1000)


if __name__ == "__main__":
    unittest.main()

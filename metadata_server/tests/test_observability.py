import unittest
from unittest.mock import patch

from metadata_server.observability import otel


class TrackWriteTests(unittest.TestCase):
    def test_records_success(self) -> None:
        with patch.object(otel, "record_write") as record:
            with otel.track_write("build", project="//UE4/Main"):
                pass

        entity, result, duration = record.call_args.args
        self.assertEqual((entity, result), ("build", "success"))
        self.assertGreaterEqual(duration, 0)
        self.assertEqual(record.call_args.kwargs, {"project": "//UE4/Main"})

    def test_records_error_and_reraises(self) -> None:
        with patch.object(otel, "record_write") as record:
            with self.assertRaises(RuntimeError):
                with otel.track_write("issue"):
                    raise RuntimeError("boom")

        self.assertEqual(record.call_args.args[1], "error")

    def test_labels_default_to_unknown(self) -> None:
        self.assertEqual(otel._labels("", "success", ""), {"entity": "unknown", "result": "success", "project": "unknown"})


if __name__ == "__main__":
    unittest.main()

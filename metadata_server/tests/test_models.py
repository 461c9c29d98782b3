import unittest
from datetime import datetime, timezone

from metadata_server.errors import UnknownEnumValue
from metadata_server.models import (
    BuildData,
    BuildResult,
    EventData,
    EventType,
    IssueData,
    decode_enum,
    to_datetime,
)


class WireFormatTests(unittest.TestCase):
    def test_event_accepts_pascal_case_and_type_key(self) -> None:
        event = EventData.model_validate({"Change": 42, "UserName": "alice", "Type": "DoesNotCompile", "Project": "//UE4/Main"})
        self.assertEqual(event.change, 42)
        self.assertEqual(event.event_type, EventType.DOES_NOT_COMPILE)

        dumped = event.model_dump(by_alias=True, mode="json")
        self.assertEqual(dumped["Type"], "DoesNotCompile")
        self.assertEqual(dumped["UserName"], "alice")

    def test_legacy_integer_codes_are_accepted(self) -> None:
        event = EventData.model_validate({"Change": 1, "Type": 4})
        build = BuildData.model_validate({"ChangeNumber": 1, "Result": 3})
        self.assertEqual(event.event_type, EventType.BAD)
        self.assertEqual(build.result, BuildResult.SUCCESS)

    def test_issue_timestamps_serialize_as_epoch_seconds(self) -> None:
        issue = IssueData(id=3, created_at=datetime(2026, 1, 1, tzinfo=timezone.utc), owner=None)
        dumped = issue.model_dump(by_alias=True, mode="json")
        self.assertEqual(dumped["CreatedAt"], 1767225600)
        self.assertIsNone(dumped["ResolvedAt"])
        self.assertEqual(dumped["Owner"], "")


class DecodingTests(unittest.TestCase):
    def test_unknown_stored_name_raises(self) -> None:
        with self.assertRaises(UnknownEnumValue) as ctx:
            decode_enum(BuildResult, "Exploded")
        self.assertEqual(ctx.exception.enum_name, "BuildResult")

    def test_stored_timestamps_normalize_to_utc(self) -> None:
        self.assertEqual(to_datetime("2026-01-01T00:00:00"), datetime(2026, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(to_datetime("2026-01-01T02:00:00+02:00"), datetime(2026, 1, 1, tzinfo=timezone.utc))
        self.assertIsNone(to_datetime(None))


if __name__ == "__main__":
    unittest.main()

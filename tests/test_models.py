from __future__ import annotations

import unittest

from pydantic import ValidationError

from diagnostics_sdk.models import AppProfile, ArtifactAccepted, ArtifactKind, ETag, ErrorResponse


class TestArtifactKind(unittest.TestCase):
    def test_known_kinds_parse_case_insensitively(self) -> None:
        self.assertIs(ArtifactKind("dump"), ArtifactKind.DUMP)
        self.assertIs(ArtifactKind("GCDUMP"), ArtifactKind.GC_DUMP)
        self.assertIs(ArtifactKind.parse("Trace"), ArtifactKind.TRACE)

    def test_unknown_kinds_stay_strings(self) -> None:
        self.assertEqual(ArtifactKind.parse("HeapSnapshot"), "HeapSnapshot")
        self.assertNotIsInstance(ArtifactKind.parse("HeapSnapshot"), ArtifactKind)
        with self.assertRaises(ValueError):
            ArtifactKind("HeapSnapshot")

    def test_str_is_wire_value(self) -> None:
        self.assertEqual(str(ArtifactKind.GC_DUMP), "GCDump")


class TestETag(unittest.TestCase):
    def test_header_value(self) -> None:
        cases = [
            ("0x8DC", '"0x8DC"'),
            ('"0x8DC"', '"0x8DC"'),
            ('W/"0x8DC"', 'W/"0x8DC"'),
            ("*", "*"),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(ETag(raw).header_value(), expected)

    def test_equality_is_by_value(self) -> None:
        self.assertEqual(ETag('"a"'), ETag('"a"'))
        self.assertNotEqual(ETag('"a"'), ETag('"b"'))
        self.assertEqual(str(ETag('"a"')), '"a"')


class TestServiceModels(unittest.TestCase):
    def test_property_names_match_any_case(self) -> None:
        for payload in ({"artifactId": "x"}, {"ArtifactId": "x"}, {"ARTIFACTID": "x"}, {"artifact_id": "x"}):
            with self.subTest(payload=payload):
                self.assertEqual(ArtifactAccepted.model_validate(payload).artifact_id, "x")

    def test_unknown_properties_are_kept(self) -> None:
        accepted = ArtifactAccepted.model_validate({"artifactKind": "Trace", "stampId": "s-1"})
        self.assertEqual(accepted.to_dict(), {"artifactKind": "Trace", "stampId": "s-1"})

    def test_unknown_artifact_kind_round_trips_as_string(self) -> None:
        accepted = ArtifactAccepted.model_validate({"artifactKind": "HeapSnapshot"})
        self.assertEqual(accepted.artifact_kind, "HeapSnapshot")
        self.assertEqual(accepted.to_dict()["artifactKind"], "HeapSnapshot")

    def test_to_dict_uses_camel_case(self) -> None:
        profile = AppProfile(app_id="app", i_key="abc")
        self.assertEqual(profile.to_dict(), {"appId": "app", "iKey": "abc"})

    def test_error_response_tolerates_missing_fields(self) -> None:
        self.assertIsNone(ErrorResponse.model_validate({}).error)
        self.assertIsNone(ErrorResponse.model_validate({"error": {}}).error.code)

    def test_invalid_json_raises_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            AppProfile.model_validate_json(b"[1, 2")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest

import httpx

import diagnostics_sdk
from diagnostics_sdk.clients.base import raise_for_status
from diagnostics_sdk.errors import (
    DiagnosticsError,
    InvalidArgumentError,
    LeaseUnavailableError,
    ProtocolViolationError,
    ServiceRequestFailedError,
)


class TestErrorTypes(unittest.TestCase):
    def test_service_request_failed_str_without_detail(self) -> None:
        error = ServiceRequestFailedError(503)
        self.assertEqual(str(error), "Request failed with status 503")

    def test_service_request_failed_str_with_service_error(self) -> None:
        error = ServiceRequestFailedError(400, error_code="InvalidKind", error_message="unknown kind")
        self.assertEqual(str(error), "Request failed with status 400: InvalidKind: unknown kind")

    def test_service_request_failed_prefers_explicit_message(self) -> None:
        error = ServiceRequestFailedError(400, message="custom", error_code="X")
        self.assertEqual(str(error), "custom")

    def test_transient_statuses(self) -> None:
        self.assertTrue(ServiceRequestFailedError(0).is_transient)
        self.assertTrue(ServiceRequestFailedError(503).is_transient)
        self.assertFalse(ServiceRequestFailedError(404).is_transient)

    def test_invalid_argument_is_value_error(self) -> None:
        error = InvalidArgumentError("i_key")
        self.assertIsInstance(error, ValueError)
        self.assertEqual(str(error), "'i_key' cannot be null or empty.")
        self.assertEqual(error.name, "i_key")

    def test_taxonomy_kinds_are_distinct(self) -> None:
        kinds = [InvalidArgumentError, ProtocolViolationError, LeaseUnavailableError, ServiceRequestFailedError]
        for kind in kinds:
            self.assertTrue(issubclass(kind, DiagnosticsError))
            for other in kinds:
                if other is not kind:
                    self.assertFalse(issubclass(kind, other), f"{kind.__name__} is a {other.__name__}")

    def test_package_exports_errors(self) -> None:
        for name in ("LeaseUnavailableError", "ServiceRequestFailedError", "ProtocolViolationError"):
            self.assertIn(name, diagnostics_sdk.__all__)
        self.assertIs(diagnostics_sdk.LeaseUnavailableError, LeaseUnavailableError)


class TestRaiseForStatus(unittest.IsolatedAsyncioTestCase):
    async def test_success_passes_through(self) -> None:
        for status in (200, 201, 204, 299):
            with self.subTest(status=status):
                await raise_for_status(httpx.Response(status))

    async def test_service_error_body_is_reported(self) -> None:
        response = httpx.Response(400, json={"error": {"code": "Foo", "message": "Bar"}})
        with self.assertRaises(ServiceRequestFailedError) as ctx:
            await raise_for_status(response)

        error = ctx.exception
        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.reason, "Bad Request")
        self.assertEqual(error.error_code, "Foo")
        self.assertEqual(error.error_message, "Bar")
        self.assertIn("Foo", str(error))
        self.assertIn("Bar", str(error))
        self.assertEqual(
            str(error),
            "Request failed.\nStatus: 400 (Bad Request)\nErrorCode: Foo\nMessage: Bar\n",
        )

    async def test_service_error_properties_match_any_case(self) -> None:
        response = httpx.Response(409, json={"Error": {"CODE": "Foo", "Message": "Bar"}})
        with self.assertRaises(ServiceRequestFailedError) as ctx:
            await raise_for_status(response)
        self.assertEqual(ctx.exception.error_code, "Foo")
        self.assertEqual(ctx.exception.error_message, "Bar")

    async def test_unparsable_body_still_fails(self) -> None:
        response = httpx.Response(502, content=b"<html>bad gateway</html>")
        with self.assertRaises(ServiceRequestFailedError) as ctx:
            await raise_for_status(response)

        error = ctx.exception
        self.assertEqual(error.status_code, 502)
        self.assertIsNone(error.error_code)
        self.assertIsNone(error.error_message)
        self.assertEqual(str(error), "Request failed.\nStatus: 502 (Bad Gateway)\n")

    async def test_blank_error_fields_are_omitted(self) -> None:
        response = httpx.Response(500, json={"error": {"code": "  ", "message": ""}})
        with self.assertRaises(ServiceRequestFailedError) as ctx:
            await raise_for_status(response)
        self.assertNotIn("ErrorCode", str(ctx.exception))
        self.assertNotIn("Message", str(ctx.exception))

    async def test_unknown_status_has_no_reason(self) -> None:
        response = httpx.Response(599)
        with self.assertRaises(ServiceRequestFailedError) as ctx:
            await raise_for_status(response)
        self.assertIsNone(ctx.exception.reason)
        self.assertIn("Status: 599\n", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()

import asyncio
import unittest
from unittest.mock import AsyncMock, call

import httpx

from copilot_terminal.auth.device_flow import DEVICE_GRANT_TYPE, DeviceCode, IdentityAuthenticator
from copilot_terminal.errors import CopilotError, ErrorKind
from tests.helpers import make_response

_DEVICE_PAYLOAD = {
    "device_code": "dev-123",
    "user_code": "ABCD-1234",
    "verification_uri": "https://github.com/login/device",
    "expires_in": 900,
    "interval": 5,
}


class RequestDeviceCodeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = AsyncMock()
        self.auth = IdentityAuthenticator(self.client, sleep=AsyncMock())

    def test_returns_parsed_device_code(self) -> None:
        self.client.post.return_value = make_response(200, _DEVICE_PAYLOAD)

        device = asyncio.run(self.auth.request_device_code())

        self.assertEqual(
            DeviceCode("dev-123", "ABCD-1234", "https://github.com/login/device", 900, 5),
            device,
        )
        call_args = self.client.post.call_args
        self.assertEqual("https://github.com/login/device/code", call_args.args[0])
        self.assertEqual("read:user,copilot", call_args.kwargs["json"]["scope"])
        self.assertIn("client_id", call_args.kwargs["json"])

    def test_non_2xx_is_fatal_with_status_text(self) -> None:
        self.client.post.return_value = make_response(503, {"error": "down"}, reason="Service Unavailable")

        with self.assertRaises(CopilotError) as ctx:
            asyncio.run(self.auth.request_device_code())

        self.assertEqual(ErrorKind.DEVICE_CODE_FAILED, ctx.exception.kind)
        self.assertIn("Service Unavailable", str(ctx.exception))
        self.assertEqual(1, self.client.post.await_count)

    def test_transport_error_is_classified(self) -> None:
        self.client.post.side_effect = httpx.ConnectError("no route")

        with self.assertRaises(CopilotError) as ctx:
            asyncio.run(self.auth.request_device_code())

        self.assertEqual(ErrorKind.TRANSPORT_UNAVAILABLE, ctx.exception.kind)


class PollForTokenTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = AsyncMock()
        self.sleep = AsyncMock()
        self.auth = IdentityAuthenticator(self.client, sleep=self.sleep)

    def test_pending_three_times_then_success(self) -> None:
        pending = {"error": "authorization_pending"}
        self.client.post.side_effect = [
            make_response(200, pending),
            make_response(200, pending),
            make_response(200, pending),
            make_response(200, {"access_token": "gho_fourth", "token_type": "bearer"}),
        ]

        token = asyncio.run(self.auth.poll_for_token("dev-123", 5))

        self.assertEqual("gho_fourth", token)
        self.assertEqual(4, self.client.post.await_count)
        self.assertEqual([call(5), call(5), call(5)], self.sleep.await_args_list)

    def test_exchange_request_shape(self) -> None:
        self.client.post.return_value = make_response(200, {"access_token": "gho_x"})

        asyncio.run(self.auth.poll_for_token("dev-123", 5))

        call_args = self.client.post.call_args
        self.assertEqual("https://github.com/login/oauth/access_token", call_args.args[0])
        body = call_args.kwargs["json"]
        self.assertEqual("dev-123", body["device_code"])
        self.assertEqual(DEVICE_GRANT_TYPE, body["grant_type"])
        self.sleep.assert_not_awaited()

    def test_transport_and_http_errors_are_retried(self) -> None:
        self.client.post.side_effect = [
            httpx.ConnectError("offline"),
            make_response(500, {"error": "boom"}, reason="Internal Server Error"),
            make_response(200, {"error": "slow_down"}),
            make_response(200, {"access_token": "gho_ok"}),
        ]

        token = asyncio.run(self.auth.poll_for_token("dev-123", 2))

        self.assertEqual("gho_ok", token)
        self.assertEqual(3, self.sleep.await_count)

    def test_deadline_stops_polling(self) -> None:
        self.client.post.return_value = make_response(200, {"error": "authorization_pending"})

        with self.assertRaises(CopilotError) as ctx:
            asyncio.run(self.auth.poll_for_token("dev-123", 5, expires_in=0))

        self.assertEqual(ErrorKind.DEVICE_CODE_EXPIRED, ctx.exception.kind)
        self.assertEqual(1, self.client.post.await_count)


if __name__ == "__main__":
    unittest.main()

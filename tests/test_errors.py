import unittest

from copilot_terminal.errors import (
    STAGE_COMPLETION,
    STAGE_TOKEN,
    CopilotError,
    ErrorKind,
    StorageError,
    TokenExpiredError,
    classify_status,
    user_message,
)


class ClassifyStatusTests(unittest.TestCase):
    def test_success_is_unclassified(self) -> None:
        for status in (200, 201, 204):
            self.assertIsNone(classify_status(status, stage=STAGE_TOKEN))
            self.assertIsNone(classify_status(status, stage=STAGE_COMPLETION))

    def test_auth_failures_depend_on_stage(self) -> None:
        for status in (401, 403):
            self.assertEqual(ErrorKind.IDENTITY_EXPIRED, classify_status(status, stage=STAGE_TOKEN))
            self.assertEqual(ErrorKind.SERVICE_TOKEN_EXPIRED, classify_status(status, stage=STAGE_COMPLETION))

    def test_bad_request_only_invalid_for_completion(self) -> None:
        self.assertEqual(ErrorKind.AUTHENTICATION_FAILED, classify_status(400, stage=STAGE_TOKEN))
        self.assertEqual(ErrorKind.INVALID_REQUEST, classify_status(400, stage=STAGE_COMPLETION))

    def test_shared_branches(self) -> None:
        for stage in (STAGE_TOKEN, STAGE_COMPLETION):
            self.assertEqual(ErrorKind.RATE_LIMITED, classify_status(429, stage=stage))
            self.assertEqual(ErrorKind.SERVICE_UNAVAILABLE, classify_status(500, stage=stage))
            self.assertEqual(ErrorKind.SERVICE_UNAVAILABLE, classify_status(599, stage=stage))


class MessageTests(unittest.TestCase):
    def test_every_kind_has_a_message(self) -> None:
        for kind in ErrorKind:
            self.assertTrue(user_message(kind))

    def test_token_stage_overrides(self) -> None:
        self.assertIn("Rate limit exceeded", user_message(ErrorKind.RATE_LIMITED, STAGE_TOKEN))
        self.assertIn("usage limit", user_message(ErrorKind.RATE_LIMITED, STAGE_COMPLETION))

    def test_default_message_comes_from_kind(self) -> None:
        err = CopilotError(ErrorKind.INVALID_REQUEST)
        self.assertEqual(user_message(ErrorKind.INVALID_REQUEST), err.message)

    def test_token_expired_is_a_copilot_error(self) -> None:
        err = TokenExpiredError(ErrorKind.IDENTITY_EXPIRED, "github")
        self.assertIsInstance(err, CopilotError)
        self.assertEqual("github", err.token_type)

    def test_storage_error_kind(self) -> None:
        self.assertEqual(ErrorKind.STORAGE_FAILED, StorageError("x").kind)

import json
import shutil
import unittest
from pathlib import Path
from unittest.mock import MagicMock
from uuid import uuid4

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def make_response(status_code: int, json_data: object = None, reason: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.text = json.dumps(json_data) if isinstance(json_data, (dict, list)) else str(json_data)
    resp.reason_phrase = reason
    return resp


class ScratchDirTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"{self.__class__.__name__.lower()}-{uuid4().hex}"
        self._tmp_dir.mkdir(parents=True, exist_ok=True)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp_dir, ignore_errors=True)

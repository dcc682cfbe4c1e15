import json
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path

from core.utils.json_serializers import json_serializer


class Color(Enum):
    RED = "red"


class SampleObj:
    def __str__(self):
        return "sample"


# =========================================================================
# json_serializer
# =========================================================================


class TestJsonSerializer:
    def test_serializes_datetime_to_isoformat(self):
        assert json_serializer(datetime(2025, 6, 15, 10, 30, 0)) == "2025-06-15T10:30:00"

    def test_serializes_date_to_isoformat(self):
        assert json_serializer(date(2025, 12, 25)) == "2025-12-25"

    def test_serializes_timedelta_to_seconds(self):
        assert json_serializer(timedelta(minutes=5)) == 300.0

    def test_serializes_enum_to_value(self):
        assert json_serializer(Color.RED) == "red"

    def test_serializes_path_to_string(self):
        assert json_serializer(Path("/tmp/logs")) == "/tmp/logs"

    def test_serializes_bytes_to_text(self):
        assert json_serializer(b"{\"ok\": true}") == '{"ok": true}'
        assert json_serializer(b"\xff") == "�"

    def test_falls_back_to_str(self):
        assert json_serializer(SampleObj()) == "sample"

    def test_works_with_json_dumps(self):
        payload = {"when": datetime(2025, 1, 1), "color": Color.RED}
        assert json.loads(json.dumps(payload, default=json_serializer)) == {
            "when": "2025-01-01T00:00:00",
            "color": "red",
        }

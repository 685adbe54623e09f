# apps/domain/tests/test_codec.py
"""
Tests for the index and content file codecs
"""
import json
import logging
from datetime import datetime, timezone

import pytest

from apps.domain.codec import (
    decode_content,
    decode_index,
    encode_content,
    encode_index,
    normalize_examples,
    parse_timestamp,
)
from apps.domain.models import (
    Example,
    MalformedIndexError,
    TemplateContent,
    TemplateHeader,
    format_timestamp,
)

INDEX_ENTRY = {
    "id": "7f1c",
    "Department": "CS",
    "AppCode": "APP1",
    "name": "Greeting",
    "link": "CS/APP1/Greeting.json",
    "version": "v1.0",
    "createdAt": "2024-03-01T10:15:30.123Z",
    "createdBy": "alice",
    "updatedAt": "2024-03-02T08:00:00.000Z",
    "updatedBy": "bob",
}


class TestDecodeIndex:
    """Test parsing of the index file"""

    def test_decodes_wire_keys(self):
        headers = decode_index(json.dumps([INDEX_ENTRY]).encode("utf-8"))

        assert len(headers) == 1
        header = headers[0]
        assert header.id == "7f1c"
        assert header.department == "CS"
        assert header.app_code == "APP1"
        assert header.content_path == "CS/APP1/Greeting.json"
        assert header.created_at == datetime(2024, 3, 1, 10, 15, 30, 123000, tzinfo=timezone.utc)
        assert header.updated_by == "bob"

    def test_accepts_camel_case_aliases(self):
        entry = {
            "id": "1",
            "name": "n",
            "department": "HR",
            "appCode": "ONB",
            "contentPath": "HR/ONB/n.json",
        }
        header = decode_index(json.dumps([entry]).encode("utf-8"))[0]

        assert header.department == "HR"
        assert header.app_code == "ONB"
        assert header.content_path == "HR/ONB/n.json"

    def test_empty_bytes_is_empty_index(self):
        assert decode_index(b"") == []
        assert decode_index(b"  \n") == []

    def test_non_array_is_malformed(self):
        with pytest.raises(MalformedIndexError, match="JSON array"):
            decode_index(b'{"id": "1"}')

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedIndexError, match="not valid JSON"):
            decode_index(b"[{")

    def test_non_object_entries_are_skipped(self, caplog):
        raw = json.dumps([INDEX_ENTRY, "stray", 42]).encode("utf-8")

        with caplog.at_level(logging.WARNING):
            headers = decode_index(raw)

        assert [h.id for h in headers] == ["7f1c"]
        assert "position 1" in caplog.text

    def test_invalid_timestamp_decodes_as_absent(self, caplog):
        entry = dict(INDEX_ENTRY, createdAt="yesterday")

        with caplog.at_level(logging.WARNING):
            header = decode_index(json.dumps([entry]).encode("utf-8"))[0]

        assert header.created_at is None
        assert "createdAt" in caplog.text

    def test_missing_version_defaults(self):
        entry = {k: v for k, v in INDEX_ENTRY.items() if k != "version"}
        header = decode_index(json.dumps([entry]).encode("utf-8"))[0]
        assert header.version == "v1.0"


class TestEncodeIndex:
    """Test serialization of the index file"""

    def test_round_trip_preserves_order(self):
        entries = [dict(INDEX_ENTRY, id=str(i), name=f"T{i}") for i in range(5)]
        headers = decode_index(json.dumps(entries).encode("utf-8"))

        assert decode_index(encode_index(headers)) == headers
        assert [h.id for h in decode_index(encode_index(headers))] == ["0", "1", "2", "3", "4"]

    def test_writes_wire_keys_and_drops_unknown(self):
        entry = dict(INDEX_ENTRY, colour="blue")
        headers = decode_index(json.dumps([entry]).encode("utf-8"))

        written = json.loads(encode_index(headers))

        assert written == [INDEX_ENTRY]

    def test_two_space_indent_and_non_ascii(self):
        header = TemplateHeader(id="1", name="Grüße", department="CS", app_code="APP1")

        text = encode_index([header]).decode("utf-8")

        assert "Grüße" in text
        assert '\n  {\n    "id": "1"' in text

    def test_unparsed_timestamp_text_written_back(self):
        entry = dict(
            INDEX_ENTRY, createdAt="2024-05-01T10:00:00.123456Z", updatedAt="01/05/2024"
        )
        headers = decode_index(json.dumps([entry]).encode("utf-8"))

        written = json.loads(encode_index(headers))

        assert written == [entry]

    def test_changed_timestamp_is_reformatted(self):
        entry = dict(INDEX_ENTRY, updatedAt="01/05/2024")
        header = decode_index(json.dumps([entry]).encode("utf-8"))[0]
        header.updated_at = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)

        written = json.loads(encode_index([header]))

        assert written[0]["updatedAt"] == "2024-06-01T09:30:00.000Z"
        assert written[0]["createdAt"] == INDEX_ENTRY["createdAt"]

    def test_absent_timestamps_encode_as_empty(self):
        written = json.loads(encode_index([TemplateHeader(id="1")]))
        assert written[0]["createdAt"] == ""
        assert written[0]["updatedAt"] == ""


class TestTimestamps:
    """Test timestamp parsing and formatting"""

    def test_format_uses_millis_and_z(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-01-02T03:04:05.678Z"

    def test_naive_datetime_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"

    def test_parse_blank(self):
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_parse_offset(self):
        parsed = parse_timestamp("2024-01-02T05:00:00+02:00")
        assert format_timestamp(parsed) == "2024-01-02T03:00:00.000Z"


class TestContentCodec:
    """Test content file encoding"""

    def test_encode_uses_content_file_keys(self):
        content = TemplateContent(
            main_content="Hello",
            instructions="Be brief",
            examples=(Example(input="hi", output="hey"),),
        )

        data = json.loads(encode_content(content))

        assert data == {
            "Main Prompt Content": "Hello",
            "Additional Instructions": "Be brief",
            "Examples": [{"User Input": "hi", "Expected Output": "hey"}],
        }

    def test_decode_restores_content(self):
        content = TemplateContent("Hello", "Be brief", (Example("hi", "hey"),))
        assert decode_content(encode_content(content).encode("utf-8")) == content

    def test_decode_missing_keys_are_empty(self):
        assert decode_content(b"{}") == TemplateContent()

    def test_decode_invalid_json_raises(self):
        with pytest.raises(ValueError):
            decode_content(b"not json")


class TestNormalizeExamples:
    """Test example key normalization"""

    @pytest.mark.parametrize(
        "item,expected",
        [
            ({"input": "a", "output": "b"}, Example("a", "b")),
            ({"userInput": "a", "expectedOutput": "b"}, Example("a", "b")),
            ({"question": "a", "answer": "b"}, Example("a", "b")),
            ({"User Input": "a", "Expected Output": "b"}, Example("a", "b")),
            ({"input": "a"}, Example("a", "")),
        ],
    )
    def test_key_spellings(self, item, expected):
        assert normalize_examples([item]) == [expected]

    def test_first_spelling_wins(self):
        item = {"input": "first", "question": "second", "output": "x"}
        assert normalize_examples([item]) == [Example("first", "x")]

    def test_non_mapping_entries_skipped(self):
        assert normalize_examples(["text", None, {"input": "a", "output": "b"}]) == [
            Example("a", "b")
        ]

    def test_non_list_is_empty(self):
        assert normalize_examples(None) == []
        assert normalize_examples("examples") == []

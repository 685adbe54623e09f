# apps/domain/codec.py

"""
Index and content file codecs

The index file is a JSON array of template headers; each content file is a
JSON object. Key spellings follow the files already in the repository
("Department", "AppCode", "link"), so existing data keeps loading.

Unknown keys are tolerated on decode and dropped on encode. Timestamps are
written back with their original text unless the value changed.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from apps.domain.models import (
    DEFAULT_VERSION,
    Example,
    MalformedIndexError,
    TemplateContent,
    TemplateHeader,
    format_timestamp,
)

logger = logging.getLogger(__name__)

# Wire key -> accepted aliases, first match wins
_HEADER_ALIASES = {
    "department": ("Department", "department"),
    "app_code": ("AppCode", "appCode"),
    "content_path": ("link", "contentPath"),
}

_INPUT_KEYS = ("input", "userInput", "question", "User Input")
_OUTPUT_KEYS = ("output", "expectedOutput", "answer", "Expected Output")


def parse_timestamp(value: Any, label: str = "timestamp") -> Optional[datetime]:
    """
    Parse an ISO-8601 string, returning None if blank or invalid

    Args:
        value: Raw value from the index
        label: Field name used in the warning

    Returns:
        Timezone-aware datetime or None
    """
    if value is None or not str(value).strip():
        return None
    try:
        return _parse_iso(str(value))
    except ValueError:
        logger.warning(f"Skipping invalid date for {label}: {value!r}")
        return None


def _parse_iso(text: str) -> datetime:
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _timestamp_text(value: Optional[datetime], original: str) -> str:
    """Original index text while it still means value, else the formatted value"""
    if original:
        try:
            unchanged = _parse_iso(original) == value
        except ValueError:
            unchanged = value is None
        if unchanged:
            return original
    return format_timestamp(value)


def _text(entry: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return str(value)
    return ""


# ============================================================
# INDEX
# ============================================================

def decode_header(entry: Dict[str, Any]) -> TemplateHeader:
    """Build a TemplateHeader from one index object"""
    return TemplateHeader(
        id=_text(entry, "id"),
        name=_text(entry, "name"),
        department=_text(entry, *_HEADER_ALIASES["department"]),
        app_code=_text(entry, *_HEADER_ALIASES["app_code"]),
        content_path=_text(entry, *_HEADER_ALIASES["content_path"]),
        version=_text(entry, "version") or DEFAULT_VERSION,
        created_at=parse_timestamp(entry.get("createdAt"), "createdAt"),
        updated_at=parse_timestamp(entry.get("updatedAt"), "updatedAt"),
        created_by=_text(entry, "createdBy"),
        updated_by=_text(entry, "updatedBy"),
        created_at_text=_text(entry, "createdAt"),
        updated_at_text=_text(entry, "updatedAt"),
    )


def encode_header(header: TemplateHeader) -> Dict[str, str]:
    """Turn a TemplateHeader into its index object"""
    return {
        "id": header.id,
        "Department": header.department,
        "AppCode": header.app_code,
        "name": header.name,
        "link": header.content_path,
        "version": header.version,
        "createdAt": _timestamp_text(header.created_at, header.created_at_text),
        "createdBy": header.created_by,
        "updatedAt": _timestamp_text(header.updated_at, header.updated_at_text),
        "updatedBy": header.updated_by,
    }


def decode_index(raw: bytes) -> List[TemplateHeader]:
    """
    Parse the index file

    Args:
        raw: Index file bytes

    Returns:
        Headers in file order

    Raises:
        MalformedIndexError: If the bytes are not a JSON array
    """
    if not raw or not raw.strip():
        return []
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedIndexError(f"Index file is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedIndexError(
            f"Index file must be a JSON array, got {type(data).__name__}"
        )

    headers = []
    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning(f"Skipping non-object index entry at position {position}")
            continue
        headers.append(decode_header(entry))
    return headers


def encode_index(headers: Iterable[TemplateHeader]) -> bytes:
    """Serialize headers to index file bytes, preserving order"""
    payload = [encode_header(h) for h in headers]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


# ============================================================
# CONTENT
# ============================================================

def normalize_examples(raw: Any) -> List[Example]:
    """
    Convert loosely shaped example dicts into Example objects

    Accepts the key spellings used by the web client and by content files.
    Entries that are not mappings are skipped.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    examples = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        examples.append(
            Example(input=_text(item, *_INPUT_KEYS), output=_text(item, *_OUTPUT_KEYS))
        )
    return examples


def decode_content(raw: bytes) -> TemplateContent:
    """Parse a content file"""
    data = json.loads(raw.decode("utf-8")) if raw and raw.strip() else {}
    if not isinstance(data, dict):
        data = {}
    return TemplateContent(
        main_content=_text(data, "Main Prompt Content"),
        instructions=_text(data, "Additional Instructions"),
        examples=tuple(normalize_examples(data.get("Examples"))),
    )


def encode_content(content: TemplateContent) -> str:
    """Serialize a content file"""
    payload = {
        "Main Prompt Content": content.main_content,
        "Additional Instructions": content.instructions,
        "Examples": [
            {"User Input": ex.input, "Expected Output": ex.output}
            for ex in content.examples
        ],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)

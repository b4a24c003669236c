import base64
import datetime
import io
import json
import unittest
import uuid

from propset2text.extractors.data_types import (
    PropertiesMetadata,
    PropertiesThumbnail,
    PropertyEntry,
)
from propset2text.extractors.properties_extractor import read_properties
from propset2text.extractors.serialization import serialize_extraction
from propset2text.tests.stream_builders import sample_document

tc = unittest.TestCase()
tc.maxDiff = None


def test_serialize_for_json() -> None:
    content = next(read_properties(io.BytesIO(sample_document()), "sample.doc"))

    payload = serialize_extraction(content)
    tc.assertIsInstance(payload, dict)

    try:
        json.dumps(payload)
    except Exception as e:
        tc.fail("Unexpected exception: {}".format(e))

    tc.assertEqual("PropertiesContent", payload["_type"])
    tc.assertEqual("PropertiesMetadata", payload["metadata"]["_type"])
    tc.assertEqual("doc", payload["metadata"]["document_kind"])
    tc.assertIsNone(payload["thumbnail"])


def test_property_entry_to_dict() -> None:
    entry = PropertyEntry(name="PID_AUTHOR", value="Mickey")

    tc.assertEqual(
        {"_type": "PropertyEntry", "name": "PID_AUTHOR", "value": "Mickey"},
        serialize_extraction(entry),
    )
    tc.assertEqual("PID_AUTHOR = Mickey\n", entry.to_line())


def test_binary_payloads_only_on_request() -> None:
    thumbnail = PropertiesThumbnail(
        clipboard_format_tag=-1,
        clipboard_format=3,
        content_type="image/x-wmf",
        data=b"\x01\x00\x09\x00",
        size_bytes=4,
    )

    tc.assertIsNone(serialize_extraction(thumbnail)["data"])
    tc.assertEqual(
        {"_bytes": base64.b64encode(b"\x01\x00\x09\x00").decode("utf-8")},
        serialize_extraction(thumbnail, include_binary=True)["data"],
    )


def test_non_dataclass_values() -> None:
    stamp = datetime.datetime(2009, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    guid = uuid.UUID("F29F85E0-4FF9-1068-AB91-08002B27B3D9")

    tc.assertEqual(
        {"created": "2009-01-02T03:04:05+00:00", "ids": [str(guid)], "1": None},
        serialize_extraction({"created": stamp, "ids": (guid,), 1: None}),
    )
    tc.assertEqual({"value": 3}, serialize_extraction(3))


def test_metadata_to_dict() -> None:
    metadata = PropertiesMetadata(document_kind="xls", codepage=1200)
    metadata.populate_from_path("reports/book.xls")

    result = metadata.to_dict()
    tc.assertEqual("book.xls", result["filename"])
    tc.assertEqual(".xls", result["file_extension"])
    tc.assertEqual("xls", result["document_kind"])
    tc.assertEqual(1200, result["codepage"])
    tc.assertFalse(result["has_summary_information"])

import logging
import re
import time
from typing import List, Optional

import requests

from gallerysync.config import SyncConfig
from gallerysync.exceptions import QueryError
from gallerysync.models import APPROVED, PhotoRecord, Timestamp, is_timestamp

LOGGER = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"ckAPIToken=[^&\s'\"<>]+")


def build_query_body(record_type: str, page_size: int, continuation_marker: Optional[str] = None) -> dict:
    """
    Request body for records/query, filtered to approved photos.
    """
    body = {
        "query": {
            "recordType": record_type,
            "filterBy": [{
                "fieldName": "status",
                "comparator": "EQUALS",
                "fieldValue": {"value": APPROVED, "type": "STRING"}
            }]
        },
        "resultsLimit": page_size
    }
    if continuation_marker:
        body["continuationMarker"] = continuation_marker
    return body


def query_records(config: SyncConfig, continuation_marker: Optional[str] = None) -> dict:
    """
    Fetch a single page of records. Raises QueryError on any failure.
    """
    body = build_query_body(config.record_type, config.page_size, continuation_marker)
    try:
        resp = requests.post(
            config.query_url,
            params={"ckAPIToken": config.api_token},
            headers={"Content-Type": "application/json"},
            json=body,
            timeout=config.request_timeout,
        )
    except requests.RequestException as exc:
        raise QueryError(f"CloudKit query failed: {_redact_tokens(str(exc))}") from exc

    if resp.status_code != 200:
        raise QueryError(f"CloudKit query failed: {resp.status_code} {_redact_tokens(resp.text)}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise QueryError("CloudKit query returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise QueryError("CloudKit query returned an unexpected payload")
    return data


def fetch_all_records(config: SyncConfig) -> List[PhotoRecord]:
    """
    Follow continuation markers until the last page and return every record,
    in server order. Malformed records are logged and left out.
    """
    records: List[PhotoRecord] = []
    continuation_marker = None

    while True:
        data = query_records(config, continuation_marker)
        page = data.get("records") or []
        if not isinstance(page, list):
            raise QueryError("CloudKit query returned records that are not a list")
        for raw in page:
            try:
                records.append(parse_record(raw))
            except ValueError as e:
                LOGGER.warning("Skipping malformed record: %s", e)

        continuation_marker = data.get("continuationMarker")
        if not continuation_marker:
            break
        LOGGER.debug("Fetched %d records so far, following continuation marker", len(records))

    return records


def parse_record(raw: dict) -> PhotoRecord:
    """
    Flatten CloudKit's {fields: {name: {value: ...}}} shape into a PhotoRecord.
    Asset fields carry their URL at value.downloadURL.
    Raises ValueError if the record has no usable recordName.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    record_name = raw.get("recordName")
    if not isinstance(record_name, str) or not record_name:
        raise ValueError(f"missing recordName in {raw!r:.200}")

    fields = raw.get("fields")
    if not isinstance(fields, dict):
        fields = {}

    location_name = _field_value(fields, "locationName")
    if not isinstance(location_name, str) or not location_name:
        location_name = "Unknown"

    return PhotoRecord(
        record_name=record_name,
        status=_field_value(fields, "status"),
        thumbnail_url=_asset_url(fields, "thumbnail"),
        image_url=_asset_url(fields, "image"),
        location_name=location_name,
        capture_date=_capture_date(record_name, _field_value(fields, "captureDate")),
    )


def _capture_date(record_name: str, value) -> Timestamp:
    if value is None:
        return int(time.time() * 1000)
    if is_timestamp(value):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Record %s has unusable captureDate %r, using now", record_name, value)
        return int(time.time() * 1000)


def _field_value(fields: dict, name: str):
    field = fields.get(name)
    if not isinstance(field, dict):
        return None
    return field.get("value")


def _asset_url(fields: dict, name: str) -> Optional[str]:
    value = _field_value(fields, name)
    if not isinstance(value, dict):
        return None
    url = value.get("downloadURL")
    return url if isinstance(url, str) and url else None


def _redact_tokens(value: str) -> str:
    return TOKEN_PATTERN.sub("ckAPIToken=<redacted>", value)

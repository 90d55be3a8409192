from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    VENDOR_HTTP_ERROR = "VENDOR_HTTP_ERROR"
    VENDOR_TRANSPORT_ERROR = "VENDOR_TRANSPORT_ERROR"
    VENDOR_BAD_PAYLOAD = "VENDOR_BAD_PAYLOAD"
    COLLISION = "COLLISION"
    DUPLICATE_IN_BATCH = "DUPLICATE_IN_BATCH"
    STORAGE_ERROR = "STORAGE_ERROR"
    OTHER = "OTHER"


def explain_error(code: ErrorCode, context: Dict) -> str:
    templates = {
        ErrorCode.MISSING_CREDENTIAL: "{provider} API token is not configured ({setting}).",
        ErrorCode.VENDOR_HTTP_ERROR: "{provider} API error: {status_code} - {body}",
        ErrorCode.VENDOR_TRANSPORT_ERROR: "{provider} request failed: {detail}",
        ErrorCode.VENDOR_BAD_PAYLOAD: "{provider} returned an unexpected payload: {detail}",
        ErrorCode.COLLISION: "Collision on {source} entry {external_id} dated {date}: another write already holds this key.",
        ErrorCode.DUPLICATE_IN_BATCH: "Collision on {source} entry {external_id} dated {date}: the same key appears twice in one batch with different content.",
        ErrorCode.STORAGE_ERROR: "Storage error while writing {source} entries: {detail}",
        ErrorCode.OTHER: "Sync error: {detail}",
    }
    template = templates.get(code, templates[ErrorCode.OTHER])
    return template.format(**{'detail': '', **context})

# app/api/endpoints/pinning.py
import json
import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from app.api.models.pinning import PinFileRequest, PinJsonRequest, PinResponse
from app.core.config import settings
from app.core.errors import DecodeError, PayloadTooLarge, PinningAPIError, ValidationError
from app.services.data_uri import decode_data_uri
from app.services.pinata_api import get_pinning_client, ipfs_hash_to_uri

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body; anything but a JSON object counts as empty."""
    body = await request.json()
    return body if isinstance(body, dict) else {}


def is_missing(value: Any) -> bool:
    # Empty arrays and objects count as present and fail as a bad data URI
    if isinstance(value, (list, dict)):
        return False
    return not value


def pinned_response(cid: str) -> Response:
    return JSONResponse(PinResponse(uri=ipfs_hash_to_uri(cid)).model_dump(), status_code=200)


def error_response(e: Exception) -> Response:
    return PlainTextResponse(str(e) or "Server error", status_code=500)


def check_json_size(value: Any) -> None:
    """Optional cap on pinJson payloads; disabled unless MAX_JSON_SIZE_BYTES is set."""
    max_size = settings.MAX_JSON_SIZE_BYTES
    if max_size is None:
        return
    size = len(json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))
    if size > max_size:
        raise PayloadTooLarge("JSON too large")


async def pin_file(request: Request) -> Response:
    """
    Pin a file supplied as a base64 data URI.

    Body: {"uri": "data:<mime>;base64,<payload>"}

    Returns 200 {"uri": "ipfs://<cid>"}, 400 if uri is missing, and 500 with
    the error message for decode or Pinata failures.
    """
    try:
        body = PinFileRequest.model_validate(await read_json_body(request))
        if is_missing(body.uri):
            raise ValidationError("Bad request: uri is required")

        payload = decode_data_uri(body.uri)

        client = get_pinning_client()
        cid = await run_in_threadpool(client.pin_file, payload.data, payload.mime_type)

        return pinned_response(cid)

    except ValidationError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    except DecodeError as e:
        logger.warning(f"Rejected data URI in pinFile: {e}")
        return error_response(e)
    except PinningAPIError as e:
        logger.error(f"Error in pinFile: {e}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Unexpected error in pinFile: {e}")
        return error_response(e)


async def pin_json(request: Request) -> Response:
    """
    Pin an arbitrary JSON value.

    Body: {"json": <any non-null value>}

    Returns 200 {"uri": "ipfs://<cid>"}, 400 if json is missing or null, and
    500 with the error message for Pinata failures.
    """
    try:
        body = PinJsonRequest.model_validate(await read_json_body(request))
        if body.value is None:
            raise ValidationError("Bad request: json is required")

        check_json_size(body.value)

        client = get_pinning_client()
        cid = await run_in_threadpool(client.pin_json, body.value)

        return pinned_response(cid)

    except ValidationError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    except PinningAPIError as e:
        logger.error(f"Error in pinJson: {e}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Unexpected error in pinJson: {e}")
        return error_response(e)

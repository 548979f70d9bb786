"""
JSON response helpers.

Maps the client's tagged results onto HTTP status codes.
"""

import json
from decimal import Decimal
from functools import partial
from typing import Any

from aiohttp import web

from coursechain.services.blockchain.results import ServiceResult, TransactionOutcome
from coursechain.utils.exceptions import ErrorKind, InvalidArgumentError


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.REVERTED: 400,
    ErrorKind.NETWORK_FAILURE: 503,
}

# Keep JSON numbers exact so prices never pass through binary floats
_loads = partial(json.loads, parse_float=Decimal)


def error_response(error: str | None, kind: ErrorKind | None) -> web.Response:
    """Build a failure response with the status for `kind`."""
    return web.json_response(
        {
            "success": False,
            "error": error,
            "errorKind": kind.value if kind else None,
        },
        status=ERROR_STATUS.get(kind, 500) if kind else 500,
    )


def bad_request(error: str) -> web.Response:
    return error_response(error, ErrorKind.INVALID_ARGUMENT)


def result_error(result: ServiceResult) -> web.Response:
    return error_response(result.error, result.error_kind)


def outcome_response(outcome: TransactionOutcome, status: int = 200) -> web.Response:
    """Serialize a transaction outcome, mapping failures to error statuses."""
    if outcome.success:
        return web.json_response(outcome.to_dict(), status=status)
    kind = outcome.error_kind
    return web.json_response(
        outcome.to_dict(),
        status=ERROR_STATUS.get(kind, 500) if kind else 500,
    )


async def read_json(request: web.Request) -> dict[str, Any]:
    """
    Parse a JSON object body.

    Raises:
        InvalidArgumentError: If the body is missing or not a JSON object
    """
    try:
        body = await request.json(loads=_loads)
    except ValueError as e:
        # Malformed JSON, bad encoding, or integers past the int() digit limit
        raise InvalidArgumentError(f"Invalid JSON body: {e}") from e
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return body

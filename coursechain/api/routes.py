"""
REST handlers for the course contract API.

Every handler delegates to the CourseContractService stored on the
application and translates its tagged result into JSON.
"""

from datetime import UTC, datetime

from aiohttp import web
from loguru import logger

from coursechain.config.constants import (
    API_SERVICE_NAME,
    API_VERSION,
    DEFAULT_PAGE_SIZE,
    WS_EVENT_COURSE_CREATED,
    WS_EVENT_COURSE_PURCHASED,
    WS_SUBSCRIBE_MESSAGE,
)
from coursechain.utils.exceptions import InvalidArgumentError
from coursechain.utils.validation import validate_wallet_address

from .keys import SERVICE_KEY
from .responses import (
    bad_request,
    outcome_response,
    read_json,
    result_error,
)


routes = web.RouteTableDef()


def _address_error(address: str) -> web.Response | None:
    is_valid, error = validate_wallet_address(address)
    if is_valid:
        return None
    return bad_request(f"Invalid Ethereum address: {error}")


def _query_int(request: web.Request, name: str, default: int) -> int:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"{name} must be an integer") from e


# Registered before /api/courses/{course_id} so "count" is not read as an id
@routes.get("/api/courses/count")
async def get_course_count(request: web.Request) -> web.Response:
    result = await request.app[SERVICE_KEY].get_course_count()
    if not result.success:
        return result_error(result)
    return web.json_response({"success": True, "count": result.data})


@routes.post("/api/courses")
async def create_course(request: web.Request) -> web.Response:
    """
    Create a course.

    Body: {"title": str, "description": str, "price": number | str}
    """
    try:
        body = await read_json(request)
    except InvalidArgumentError as e:
        return bad_request(str(e))

    title = body.get("title")
    description = body.get("description")
    price = body.get("price")
    if not title or not description or price is None:
        return bad_request("title, description and price are required")

    outcome = await request.app[SERVICE_KEY].create_course(title, description, price)
    return outcome_response(outcome, status=201)


@routes.get("/api/courses")
async def list_courses(request: web.Request) -> web.Response:
    try:
        page = _query_int(request, "page", 1)
        limit = _query_int(request, "limit", DEFAULT_PAGE_SIZE)
    except InvalidArgumentError as e:
        return bad_request(str(e))

    result = await request.app[SERVICE_KEY].get_courses_page(page, limit)
    if not result.success:
        return result_error(result)
    return web.json_response({"success": True, **result.data.to_dict()})


@routes.get("/api/courses/{course_id}")
async def get_course(request: web.Request) -> web.Response:
    result = await request.app[SERVICE_KEY].get_course(request.match_info["course_id"])
    if not result.success:
        return result_error(result)
    return web.json_response({"success": True, "course": result.data.to_dict()})


@routes.post("/api/courses/{course_id}/purchase")
async def purchase_course(request: web.Request) -> web.Response:
    """
    Purchase a course.

    Body: {"payment": number | str}, must be greater than zero
    """
    try:
        body = await read_json(request)
    except InvalidArgumentError as e:
        return bad_request(str(e))

    payment = body.get("payment")
    if payment is None:
        return bad_request("payment is required")

    outcome = await request.app[SERVICE_KEY].purchase_course(
        request.match_info["course_id"], payment
    )
    return outcome_response(outcome)


@routes.get("/api/courses/{course_id}/buyers")
async def get_course_buyers(request: web.Request) -> web.Response:
    result = await request.app[SERVICE_KEY].get_course_buyers(
        request.match_info["course_id"]
    )
    if not result.success:
        return result_error(result)
    return web.json_response(
        {"success": True, "buyers": result.data, "count": len(result.data)}
    )


@routes.get("/api/courses/{course_id}/purchased/{address}")
async def has_purchased(request: web.Request) -> web.Response:
    address = request.match_info["address"]
    if (error := _address_error(address)) is not None:
        return error

    result = await request.app[SERVICE_KEY].has_user_purchased_course(
        request.match_info["course_id"], address
    )
    if not result.success:
        return result_error(result)
    return web.json_response({"success": True, "hasPurchased": result.data})


@routes.get("/api/users/{address}/courses")
async def get_user_courses(request: web.Request) -> web.Response:
    address = request.match_info["address"]
    if (error := _address_error(address)) is not None:
        return error

    result = await request.app[SERVICE_KEY].get_user_purchased_courses(address)
    if not result.success:
        return result_error(result)
    return web.json_response(
        {"success": True, "courseIds": result.data, "count": len(result.data)}
    )


@routes.get("/api/balance")
@routes.get("/api/balance/{address}")
async def get_balance(request: web.Request) -> web.Response:
    address = request.match_info.get("address")
    if address is not None and (error := _address_error(address)) is not None:
        return error

    result = await request.app[SERVICE_KEY].get_balance(address)
    if not result.success:
        return result_error(result)
    return web.json_response({"success": True, **result.data.to_dict()})


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with node/contract reachability
    """
    service = request.app[SERVICE_KEY]
    payload = {
        "service": API_SERVICE_NAME,
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "contractAddress": service.contract_address,
    }

    result = await service.get_course_count()
    if not result.success:
        logger.error(f"Health check failed: {result.error}")
        return web.json_response(
            {**payload, "status": "unhealthy", "error": result.error},
            status=503,
        )
    return web.json_response({**payload, "status": "OK", "courseCount": result.data})


_ENDPOINTS = [
    {"method": "GET", "path": "/api/courses/count", "description": "Total number of courses"},
    {
        "method": "POST",
        "path": "/api/courses",
        "description": "Create a course",
        "body": {"title": "string", "description": "string", "price": "number"},
    },
    {"method": "GET", "path": "/api/courses/{courseId}", "description": "Course details"},
    {
        "method": "POST",
        "path": "/api/courses/{courseId}/purchase",
        "description": "Purchase a course",
        "body": {"payment": "number"},
    },
    {"method": "GET", "path": "/api/courses/{courseId}/buyers", "description": "Buyers of a course"},
    {"method": "GET", "path": "/api/users/{address}/courses", "description": "Courses purchased by an account"},
    {
        "method": "GET",
        "path": "/api/courses/{courseId}/purchased/{address}",
        "description": "Whether an account purchased a course",
    },
    {"method": "GET", "path": "/api/balance/{address?}", "description": "Native balance (signer by default)"},
    {
        "method": "GET",
        "path": "/api/courses",
        "description": "Paginated course list",
        "query": {"page": "number", "limit": "number"},
    },
    {"method": "GET", "path": "/health", "description": "Service health"},
    {
        "method": "GET",
        "path": "/ws",
        "description": (
            f"WebSocket; send '{WS_SUBSCRIBE_MESSAGE}' to receive "
            f"'{WS_EVENT_COURSE_CREATED}' and '{WS_EVENT_COURSE_PURCHASED}'"
        ),
    },
]


@routes.get("/api/docs")
async def docs(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "title": f"{API_SERVICE_NAME} Documentation",
            "version": API_VERSION,
            "baseURL": f"{request.scheme}://{request.host}",
            "endpoints": _ENDPOINTS,
        }
    )

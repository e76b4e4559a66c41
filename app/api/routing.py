# app/api/routing.py
import logging
from typing import Awaitable, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse, Response

from app.api.cors import apply_cors_headers, is_origin_allowed
from app.api.endpoints.pinning import pin_file, pin_json
from app.core.errors import AuthorizationError, RoutingError

logger = logging.getLogger(__name__)

Controller = Callable[[Request], Awaitable[Response]]

# Matched case-sensitively against the last path segment
ROUTES: Dict[str, Controller] = {
    "pinFile": pin_file,
    "pinJson": pin_json,
}

DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def route_name_from_path(path: str) -> Optional[str]:
    """Last non-empty segment of a URL path, or None for an empty path."""
    parts = [part for part in path.split("/") if part]
    return parts[-1] if parts else None


async def dispatch(request: Request) -> Response:
    """
    Route a request to a controller by the final segment of its path.

    - OPTIONS always gets 204; CORS headers only for allowed origins
    - Other methods from a disallowed or missing origin get 405
    - Unknown route -> 404, empty path -> 400
    - Any unhandled error -> 500 with a generic message
    """
    origin = request.headers.get("origin")

    try:
        if request.method == "OPTIONS":
            return apply_cors_headers(Response(status_code=204), origin, preflight=True)

        if not is_origin_allowed(origin):
            raise AuthorizationError("Not allowed")

        route_name = route_name_from_path(request.url.path)
        if route_name is None:
            raise RoutingError("Bad request", status_code=400)

        controller = ROUTES.get(route_name)
        if controller is None:
            raise RoutingError("Route not found", status_code=404)

        response = await controller(request)
        return apply_cors_headers(response, origin)

    except AuthorizationError as e:
        logger.warning(f"Rejected {request.method} {request.url.path} from origin {origin!r}")
        return PlainTextResponse(e.message, status_code=e.status_code)
    except RoutingError as e:
        logger.info(f"No route for {request.method} {request.url.path}: {e.message}")
        return apply_cors_headers(PlainTextResponse(e.message, status_code=e.status_code), origin)
    except Exception as e:
        logger.exception(f"Unexpected error routing {request.method} {request.url.path}: {e}")
        return apply_cors_headers(PlainTextResponse("An error occurred", status_code=500), origin)

from __future__ import annotations

import json
from typing import Any

from django.db.models import Sum
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from pydantic import ValidationError

from route_engine.exceptions import NothingToRenderError
from route_engine.models import GeocodeCacheEntry
from route_engine.schemas import RouteMetricsRequest, RouteMetricsResponse
from route_engine.services.engine import RouteEngine

_route_engine: RouteEngine | None = None


def get_route_engine() -> RouteEngine:
    global _route_engine
    if _route_engine is None:
        _route_engine = RouteEngine()
    return _route_engine


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    cached_locations = GeocodeCacheEntry.objects.count()
    total_hits = GeocodeCacheEntry.objects.aggregate(total=Sum("hit_count"))["total"] or 0
    return JsonResponse(
        {
            "status": "ok",
            "geocode_cache": {
                "locations": cached_locations,
                "hits": total_hits,
            },
        }
    )


@csrf_exempt
@require_POST
async def route_metrics_view(request: HttpRequest) -> HttpResponse:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        route_request = RouteMetricsRequest.model_validate(payload)
    except ValidationError as exc:
        return JsonResponse(
            {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request payload",
                    "details": exc.errors(include_url=False, include_context=False),
                }
            },
            status=400,
        )

    engine = get_route_engine()
    try:
        result = await engine.compute_route(route_request.to_stops(), route_request.to_options())
    except NothingToRenderError as exc:
        return _error_response("nothing_to_render", str(exc), status=422)

    response = RouteMetricsResponse.from_result(result)
    return JsonResponse(response.model_dump(mode="json"), status=200)


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)

"""Translate service failures into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..services.errors import (
    ExtractionFailure,
    FlexRouteError,
    LocationFailure,
    OptimizationFailure,
    PersistenceFailure,
    ProviderConfigurationError,
    SharedRouteError,
    SummaryFailure,
    TrafficFailure,
    UsageLimitExceeded,
    WeatherFailure,
)


def to_http_exception(exc: FlexRouteError) -> HTTPException:
    match exc:
        case UsageLimitExceeded():
            code = status.HTTP_402_PAYMENT_REQUIRED
        case LocationFailure() if exc.permission_denied:
            code = status.HTTP_403_FORBIDDEN
        case LocationFailure():
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        case SharedRouteError():
            code = status.HTTP_400_BAD_REQUEST
        case ProviderConfigurationError():
            code = status.HTTP_503_SERVICE_UNAVAILABLE
        case ExtractionFailure():
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        case OptimizationFailure() | SummaryFailure() | TrafficFailure() | WeatherFailure():
            code = status.HTTP_502_BAD_GATEWAY
        case PersistenceFailure():
            code = status.HTTP_500_INTERNAL_SERVER_ERROR
        case _:
            code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.message)

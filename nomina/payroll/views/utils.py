# views/utils.py
"""
Shared tooling for drf-spectacular docs and the response envelope.
Usage in your views:
    from .utils import (
        extend_schema, extend_schema_view,
        OpenApiParameter, OpenApiExample, OpenApiResponse,
        OpenApiTypes, inline_serializer,
        ErrorSerializer, path_int, q_int, q_str, q_date,
        responses_ok, std_errors, ok, fail, PAGE_PARAMS,
    )
"""
from drf_spectacular.utils import (
    extend_schema, extend_schema_view,
    OpenApiParameter, OpenApiExample, OpenApiResponse, inline_serializer,
)
from drf_spectacular.types import OpenApiTypes
from rest_framework import serializers
from rest_framework.response import Response

# ---- Envelope
def ok(data=None, message: str = "", status: int = 200) -> Response:
    return Response({"success": True, "data": data, "message": message, "errors": None}, status=status)


def fail(message: str, errors=None, status: int = 400) -> Response:
    return Response({"success": False, "data": None, "message": message, "errors": errors}, status=status)


# ---- Reusable error schema
ErrorSerializer = inline_serializer(
    name="ErrorEnvelope",
    fields={
        "success": serializers.BooleanField(default=False),
        "data": serializers.JSONField(allow_null=True),
        "message": serializers.CharField(),
        "errors": serializers.JSONField(allow_null=True),
    },
)


def envelope(serializer_cls, many: bool = False, name: str | None = None):
    """Wrap a serializer in the {success, data, message, errors} schema."""
    inner = serializer_cls(many=many) if isinstance(serializer_cls, type) else serializer_cls
    base = name or getattr(serializer_cls, "__name__", "Data").replace("Serializer", "")
    return inline_serializer(
        name=f"{base}{'List' if many else ''}Envelope",
        fields={
            "success": serializers.BooleanField(),
            "data": inner,
            "message": serializers.CharField(),
            "errors": serializers.JSONField(allow_null=True),
        },
    )


# ---- Param helpers

def path_int(name: str, description: str):
    return OpenApiParameter(name, OpenApiTypes.INT, OpenApiParameter.PATH, description=description)

def path_str(name: str, description: str):
    return OpenApiParameter(name, OpenApiTypes.STR, OpenApiParameter.PATH, description=description)

def q_int(name: str, description: str, required: bool = False):
    return OpenApiParameter(name, OpenApiTypes.INT, OpenApiParameter.QUERY, required=required, description=description)

def q_str(name: str, description: str, required: bool = False, enum=None):
    return OpenApiParameter(name, OpenApiTypes.STR, OpenApiParameter.QUERY, required=required,
                            description=description, enum=enum)

def q_date(name: str, description: str, required: bool = False):
    return OpenApiParameter(name, OpenApiTypes.DATE, OpenApiParameter.QUERY, required=required, description=description)


PAGE_PARAMS = [
    q_int("page", "Page number (default 1)"),
    q_int("page_size", "Page size (default 20, max 200)"),
]

# ---- Convenience for common responses

def responses_ok(serializer_cls, many: bool = False, description: str | None = None,
                 extra: dict | None = None, status: int = 200, name: str | None = None):
    """Build a {200: ...} response mapping with the envelope around the serializer."""
    mapping = {status: OpenApiResponse(response=envelope(serializer_cls, many=many, name=name), description=description or "OK")}
    if extra:
        mapping.update(extra)
    return mapping


def std_errors(extra: dict | None = None):
    """Standard error response mapping you can merge into responses=..."""
    errs = {
        401: OpenApiResponse(ErrorSerializer, description="Unauthorized"),
        403: OpenApiResponse(ErrorSerializer, description="Forbidden"),
        404: OpenApiResponse(ErrorSerializer, description="Not Found"),
        422: OpenApiResponse(ErrorSerializer, description="Validation error"),
    }
    if extra:
        errs.update(extra)
    return errs


CONFLICT = {409: OpenApiResponse(ErrorSerializer, description="State conflict")}

# Overview: Named-procedure registry and the single HTTP endpoint that dispatches to it.

"""
Procedure router

Every operation is a named procedure served from one endpoint:

    GET  /rpc/<name>?input=<json>   queries (POST with a JSON body also works)
    POST /rpc/<name>                mutations, JSON body is the input

Route modules register procedures with @registry.query / @registry.mutation
and stack the usual decorators beneath it:

    @registry.mutation("createSale")
    @require_auth
    @takes_input(CREATE_SALE_INPUT)
    def create_sale(data): ...

so the caller is authenticated before its input is looked at. The
dispatcher maps domain exceptions to HTTP status codes:

    ValidationError        400 BAD_REQUEST
    AuthenticationError    401 UNAUTHORIZED
    PermissionDeniedError  403 FORBIDDEN
    NotFoundError          404 NOT_FOUND
    ConflictError          409 CONFLICT
    anything else          500 INTERNAL_SERVER_ERROR (logged, not echoed)

Success responses are {"result": <data>}; failures are
{"error": <message>, "code": <CODE>}.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import Blueprint, current_app, jsonify, request

from .decorators import PermissionDeniedError
from .extensions import db
from .services.auth_service import AuthenticationError
from .validation import ConflictError, Field, NotFoundError, ValidationError, validate_input


@dataclass(frozen=True)
class Procedure:
    name: str
    kind: str  # "query" | "mutation"
    handler: Callable[[Any], Any]


class ProcedureRegistry:
    def __init__(self):
        self._procedures: dict[str, Procedure] = {}

    def _register(self, name: str, kind: str):
        def decorator(f):
            if name in self._procedures:
                raise ValueError(f"Procedure already registered: {name}")
            self._procedures[name] = Procedure(name=name, kind=kind, handler=f)
            return f
        return decorator

    def query(self, name: str):
        return self._register(name, "query")

    def mutation(self, name: str):
        return self._register(name, "mutation")

    def get(self, name: str) -> Procedure | None:
        return self._procedures.get(name)

    def names(self) -> list[str]:
        return sorted(self._procedures)


registry = ProcedureRegistry()


def takes_input(schema: dict[str, Field]):
    """Validate the raw payload against schema and pass the cleaned dict on."""
    def decorator(f):
        @wraps(f)
        def decorated_function(payload):
            return f(validate_input(schema, payload))

        return decorated_function
    return decorator


rpc_bp = Blueprint("rpc", __name__, url_prefix="/rpc")


def _error(code: str, message: str, status: int, **extra):
    body = {"error": message, "code": code}
    body.update(extra)
    return jsonify(body), status


def _read_input() -> Any:
    if request.method == "GET":
        raw = request.args.get("input")
        if raw is None or raw == "":
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            raise ValidationError("input must be valid JSON")

    if not request.get_data():
        return {}
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError("Invalid JSON payload")
    return payload


@rpc_bp.get("")
def list_procedures():
    """Procedure catalogue, handy for client codegen and smoke checks."""
    return jsonify({
        "procedures": [
            {"name": name, "kind": registry.get(name).kind}
            for name in registry.names()
        ]
    })


@rpc_bp.route("/<name>", methods=["GET", "POST"])
def dispatch(name: str):
    procedure = registry.get(name)
    if procedure is None:
        return _error("NOT_FOUND", f"No procedure named {name}", 404)

    if procedure.kind == "mutation" and request.method != "POST":
        return _error("METHOD_NOT_SUPPORTED", f"{name} is a mutation; use POST", 405)

    try:
        result = procedure.handler(_read_input())
    except ValidationError as e:
        return _error("BAD_REQUEST", str(e), 400)
    except AuthenticationError as e:
        return _error("UNAUTHORIZED", str(e), 401)
    except PermissionDeniedError as e:
        return _error("FORBIDDEN", str(e), 403)
    except NotFoundError as e:
        return _error("NOT_FOUND", str(e.args[0]) if e.args else "Not found", 404)
    except ConflictError as e:
        details = getattr(e, "details", None)
        if details:
            return _error("CONFLICT", str(e), 409, details=details)
        return _error("CONFLICT", str(e), 409)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Procedure %s failed", name)
        return _error("INTERNAL_SERVER_ERROR", "Internal server error", 500)

    return jsonify({"result": result}), 200

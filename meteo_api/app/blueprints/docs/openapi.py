"""OpenAPI 3 description of the public HTTP surface."""

from typing import Any, Dict

_ID_PARAM = {
    "in": "path",
    "name": "id",
    "required": True,
    "schema": {"type": "string"},
}

_ERROR = {"$ref": "#/components/schemas/Error"}


def _json(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"application/json": {"schema": schema}}


def _response(description: str, schema: Dict[str, Any] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {"description": description}
    if schema is not None:
        response["content"] = _json(schema)
    return response


def _crud_paths(resource: str, tag: str, schema_name: str, input_name: str,
                filters: Dict[str, str]) -> Dict[str, Any]:
    ref = {"$ref": f"#/components/schemas/{schema_name}"}
    input_ref = {"$ref": f"#/components/schemas/{input_name}"}
    not_found = _response(f"{tag[:-1]} not found", _ERROR)
    invalid = _response("Invalid input", _ERROR)
    unauthorized = _response("Missing, invalid or expired token", _ERROR)
    secured = [{"bearerAuth": []}]
    return {
        f"/{resource}": {
            "get": {
                "summary": f"List {resource}",
                "tags": [tag],
                "security": secured,
                "parameters": [
                    {"in": "query", "name": name, "schema": {"type": "string"}, "description": description}
                    for name, description in filters.items()
                ],
                "responses": {
                    "200": _response(f"List of {resource}", {"type": "array", "items": ref}),
                    "400": invalid,
                    "401": unauthorized,
                },
            },
            "post": {
                "summary": f"Create a {resource[:-1]}",
                "tags": [tag],
                "security": secured,
                "requestBody": {"required": True, "content": _json(input_ref)},
                "responses": {
                    "201": _response("Created", ref),
                    "400": invalid,
                    "401": unauthorized,
                },
            },
        },
        f"/{resource}/{{id}}": {
            "parameters": [_ID_PARAM],
            "get": {
                "summary": f"Get a {resource[:-1]} by id",
                "tags": [tag],
                "security": secured,
                "responses": {"200": _response("Found", ref), "401": unauthorized, "404": not_found},
            },
            "put": {
                "summary": f"Replace a {resource[:-1]}",
                "tags": [tag],
                "security": secured,
                "requestBody": {"required": True, "content": _json(input_ref)},
                "responses": {
                    "200": _response("Replaced", ref),
                    "400": invalid,
                    "401": unauthorized,
                    "404": not_found,
                },
            },
            "patch": {
                "summary": f"Update some fields of a {resource[:-1]}",
                "tags": [tag],
                "security": secured,
                "requestBody": {"required": True, "content": _json(input_ref)},
                "responses": {
                    "200": _response("Updated", ref),
                    "400": invalid,
                    "401": unauthorized,
                    "404": not_found,
                },
            },
            "delete": {
                "summary": f"Delete a {resource[:-1]}",
                "tags": [tag],
                "security": secured,
                "responses": {
                    "200": _response("Deleted", {"$ref": "#/components/schemas/Message"}),
                    "401": unauthorized,
                    "404": not_found,
                },
            },
        },
    }


def build_openapi_spec(version: str) -> Dict[str, Any]:
    paths: Dict[str, Any] = {
        "/auth/login": {
            "post": {
                "summary": "Login to get access token",
                "tags": ["Auth"],
                "requestBody": {
                    "required": True,
                    "content": _json({
                        "type": "object",
                        "required": ["username", "password"],
                        "properties": {
                            "username": {"type": "string"},
                            "password": {"type": "string"},
                        },
                    }),
                },
                "responses": {
                    "200": _response("Login successful", {
                        "type": "object",
                        "properties": {
                            "token": {"type": "string", "description": "JWT access token"},
                            "userId": {"type": "string"},
                        },
                    }),
                    "401": _response("Invalid credentials", _ERROR),
                    "500": _response("Server error", _ERROR),
                },
            }
        },
        "/status": {
            "get": {
                "summary": "Application status",
                "tags": ["Status"],
                "responses": {"200": _response("Status snapshot", {"$ref": "#/components/schemas/Status"})},
            }
        },
        "/health": {
            "get": {
                "summary": "Health check including database connectivity",
                "tags": ["Status"],
                "responses": {"200": _response("Health report", {"type": "object"})},
            }
        },
    }
    paths.update(_crud_paths("stations", "Stations", "Station", "StationInput",
                             {"name": "Filter by station name", "type": "Filter by station type"}))
    paths.update(_crud_paths("measurements", "Measurements", "Measurement", "MeasurementInput",
                             {"station_id": "Filter by station ID"}))

    timestamps = {
        "createdAt": {"type": "string", "format": "date-time"},
        "updatedAt": {"type": "string", "format": "date-time"},
    }
    station_fields = {
        "name": {"type": "string"},
        "long": {"type": "number", "minimum": -180, "maximum": 180},
        "lat": {"type": "number", "minimum": -90, "maximum": 90},
        "type": {"type": "string"},
        "code": {"type": "string", "description": "Unique station code"},
    }
    measurement_fields = {
        "value": {"type": "number"},
        "station_id": {"type": "string", "description": "ID of the station where measurement was taken"},
    }

    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Meteo Stations API",
            "version": version,
            "description": "CRUD API for meteorological stations and their measurements.",
        },
        "paths": paths,
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            },
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "string"},
                        "errors": {"type": "object", "additionalProperties": {"type": "string"}},
                    },
                },
                "Message": {"type": "object", "properties": {"message": {"type": "string"}}},
                "StationInput": {
                    "type": "object",
                    "required": list(station_fields),
                    "properties": station_fields,
                },
                "Station": {
                    "type": "object",
                    "properties": {"_id": {"type": "string"}, **station_fields, **timestamps},
                },
                "MeasurementInput": {
                    "type": "object",
                    "required": list(measurement_fields),
                    "properties": measurement_fields,
                },
                "Measurement": {
                    "type": "object",
                    "properties": {
                        "_id": {"type": "string"},
                        "value": measurement_fields["value"],
                        "station_id": {
                            "description": "Station id, or the embedded station on reads",
                            "oneOf": [{"type": "string"}, {"$ref": "#/components/schemas/Station"}],
                            "nullable": True,
                        },
                        **timestamps,
                    },
                },
                "Status": {
                    "type": "object",
                    "properties": {
                        "status": {"type": "string"},
                        "version": {"type": "string"},
                        "uptime": {"type": "integer", "description": "Seconds since start"},
                        "environment": {"type": "string"},
                        "timestamp": {"type": "string", "format": "date-time"},
                    },
                },
            },
        },
    }

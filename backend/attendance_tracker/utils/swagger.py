"""Swagger/OpenAPI description of the public API."""

SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def _json_body(required, properties):
    return {
        "required": True,
        "content": {
            "application/json": {
                "schema": {"type": "object", "required": required, "properties": properties}
            }
        }
    }

def _responses(**codes):
    """Map status code -> description, all using the envelope schemas."""
    responses = {}
    for code, description in codes.items():
        status = code.lstrip('_')
        schema = "Success" if status.startswith('2') else "Error"
        responses[status] = {
            "description": description,
            "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{schema}"}}}
        }
    return responses

def _op(tag, summary, secured=True, **extra):
    operation = {"tags": [tag], "summary": summary}
    if secured:
        operation["security"] = [{"bearerAuth": []}]
    operation.update(extra)
    return operation

def _id_param(name):
    return [{"name": name, "in": "path", "required": True, "schema": {"type": "integer"}}]

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Attendance Tracker API",
            "description": "QR-code lecture attendance for universities",
            "version": "1.0.0"
        },
        "servers": [
            {"url": "/api", "description": "Current server"}
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
            },
            "schemas": {
                "Session": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "unit_id": {"type": "integer"},
                        "lecturer_id": {"type": "integer"},
                        "start_time": {"type": "string", "format": "date-time"},
                        "end_time": {"type": "string", "format": "date-time"},
                        "ended": {"type": "boolean"},
                        "qr_token": {"type": "string"},
                        "qr_expires_at": {"type": "string", "format": "date-time"},
                        "qr_image": {"type": "string", "description": "PNG data URL"}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "student_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "absent", "late"]},
                        "timestamp": {"type": "string", "format": "date-time"}
                    }
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean"},
                        "message": {"type": "string"},
                        "status_code": {"type": "integer"},
                        "reason": {
                            "type": "string",
                            "enum": [
                                "malformed_token", "integrity_failure", "expired_token",
                                "session_not_found", "session_closed", "not_enrolled",
                                "encoding_failure"
                            ]
                        }
                    }
                },
                "Success": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "default": False},
                        "message": {"type": "string"},
                        "data": {"type": "object"}
                    }
                }
            }
        },
        "paths": {
            "/auth/login": {
                "post": _op(
                    "Authentication", "Log in with email and password", secured=False,
                    requestBody=_json_body(["email", "password"], {
                        "email": {"type": "string", "format": "email"},
                        "password": {"type": "string"}
                    }),
                    responses=_responses(_200="Tokens issued", _401="Invalid credentials")
                )
            },
            "/auth/refresh": {
                "post": _op("Authentication", "Refresh access token",
                            responses=_responses(_200="New access token"))
            },
            "/auth/me": {
                "get": _op("Authentication", "Current user", responses=_responses(_200="User profile"))
            },
            "/sessions": {
                "post": _op(
                    "Sessions", "Create a lecture session",
                    requestBody=_json_body(["unit_id"], {
                        "unit_id": {"type": "integer"},
                        "start_time": {"type": "string", "format": "date-time"},
                        "end_time": {"type": "string", "format": "date-time"},
                        "duration_minutes": {"type": "number"}
                    }),
                    responses=_responses(
                        _201="Session created with QR image", _400="Invalid input",
                        _403="Not assigned to unit", _409="Overlapping session"
                    )
                )
            },
            "/sessions/current": {
                "get": _op(
                    "Sessions", "Current session with a fresh QR image",
                    parameters=[{"name": "unit_id", "in": "query", "schema": {"type": "integer"}}],
                    responses=_responses(_200="Current session", _404="No current session")
                )
            },
            "/sessions/{session_id}/end": {
                "post": _op("Sessions", "End a session", parameters=_id_param("session_id"),
                            responses=_responses(_200="Session ended", _409="Already ended"))
            },
            "/sessions/{session_id}/regenerate-qr": {
                "post": _op("Sessions", "Reissue the QR code", parameters=_id_param("session_id"),
                            responses=_responses(_200="New QR image", _409="Session not active"))
            },
            "/sessions/last/{unit_id}": {
                "get": _op("Sessions", "Last ended session of a unit", parameters=_id_param("unit_id"),
                           responses=_responses(_200="Session", _404="None ended yet"))
            },
            "/sessions/{session_id}/status": {
                "get": _op("Sessions", "Session status", parameters=_id_param("session_id"),
                           responses=_responses(_200="Status", _404="Session not found"))
            },
            "/attendance/submit": {
                "post": _op(
                    "Attendance", "Submit a scanned QR token",
                    parameters=[{
                        "name": "X-Device-Fingerprint", "in": "header", "required": False,
                        "schema": {"type": "string"}
                    }],
                    requestBody=_json_body(["token"], {"token": {"type": "string"}}),
                    responses=_responses(
                        _201="Attendance recorded", _200="Already marked",
                        _400="Malformed or tampered token", _403="Not enrolled",
                        _404="Session not found", _409="Session closed", _410="Token expired"
                    )
                )
            },
            "/attendance/me": {
                "get": _op("Attendance", "My attendance history", responses=_responses(_200="Records"))
            },
            "/attendance/session/{session_id}": {
                "get": _op("Attendance", "Attendance for a session", parameters=_id_param("session_id"),
                           responses=_responses(_200="Records", _403="Not your session"))
            },
            "/attendance/{record_id}": {
                "patch": _op(
                    "Attendance", "Change a record's status", parameters=_id_param("record_id"),
                    requestBody=_json_body(["status"], {
                        "status": {"type": "string", "enum": ["present", "absent", "late"]}
                    }),
                    responses=_responses(_200="Updated", _400="Invalid status")
                )
            }
        }
    }

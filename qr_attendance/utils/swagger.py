"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "QR Attendance API",
            'defaultModelsExpandDepth': -1,
            'docExpansion': 'list',
            'filter': True,
            'supportedSubmitMethods': ['get', 'post', 'put', 'delete'],
            'validatorUrl': None,
        }
    )
    return swaggerui_blueprint

def _json_body(schema_ref: str = None, properties: dict = None, required: list = None):
    schema = {"$ref": f"#/components/schemas/{schema_ref}"} if schema_ref else {
        "type": "object",
        "properties": properties or {},
        "required": required or []
    }
    return {
        "required": True,
        "content": {"application/json": {"schema": schema}}
    }

def _operation(tag: str, summary: str, responses: dict, body: dict = None, secured: bool = True):
    operation = {
        "tags": [tag],
        "summary": summary,
        "responses": {
            str(code): {"description": description}
            for code, description in responses.items()
        }
    }
    if body:
        operation["requestBody"] = body
    if secured:
        operation["security"] = [{"bearerAuth": []}]
    return operation

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    ticket_path = {"name": "ticket_id", "in": "path", "required": True, "schema": {"type": "integer"}}
    record_path = {"name": "record_id", "in": "path", "required": True, "schema": {"type": "integer"}}

    return {
        "openapi": "3.0.0",
        "info": {
            "title": "QR Attendance API",
            "description": "Session tickets with QR tokens and at-most-once attendance, optionally face-verified. All dates and times are UTC; clients convert from local time before sending.",
            "version": "1.0.0"
        },
        "servers": [
            {
                "url": "http://127.0.0.1:5000/api",
                "description": "Development server"
            }
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT"
                }
            },
            "schemas": {
                "SessionCreate": {
                    "type": "object",
                    "required": ["subject", "date", "startTime", "endTime"],
                    "properties": {
                        "subject": {"type": "string"},
                        "description": {"type": "string"},
                        "location": {"type": "string"},
                        "date": {"type": "string", "format": "date", "description": "Calendar date in UTC"},
                        "startTime": {"type": "string", "example": "09:00", "description": "HH:MM in UTC"},
                        "endTime": {"type": "string", "example": "10:00", "description": "HH:MM in UTC"},
                        "capacity": {"type": "integer", "minimum": 1, "default": 100}
                    }
                },
                "AttendanceRequest": {
                    "type": "object",
                    "required": ["ticketId", "token"],
                    "properties": {
                        "ticketId": {"type": "integer"},
                        "token": {"type": "string"},
                        "method": {"type": "string", "enum": ["token_only", "biometric"], "default": "token_only"},
                        "proof": {"type": "array", "items": {"type": "number"}, "description": "128-d face embedding"}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "subject_id": {"type": "integer"},
                        "ticket_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]},
                        "marked_at": {"type": "string", "format": "date-time"},
                        "method": {"type": "string", "enum": ["token_only", "biometric"]},
                        "biometric_score": {"type": "number"},
                        "verified": {"type": "boolean"},
                        "remarks": {"type": "string", "nullable": True}
                    }
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean"},
                        "message": {"type": "string"},
                        "status_code": {"type": "integer"}
                    }
                }
            }
        },
        "paths": {
            "/auth/register": {
                "post": _operation("Authentication", "Register new user", {201: "Created", 400: "Invalid data"},
                                   body=_json_body(properties={
                                       "email": {"type": "string"},
                                       "password": {"type": "string"},
                                       "name": {"type": "string"},
                                       "role": {"type": "string", "enum": ["student", "teacher"]}
                                   }, required=["email", "password", "name"]), secured=False)
            },
            "/auth/login": {
                "post": _operation("Authentication", "Login", {200: "Tokens issued", 401: "Invalid credentials"},
                                   body=_json_body(properties={
                                       "email": {"type": "string"},
                                       "password": {"type": "string"}
                                   }, required=["email", "password"]), secured=False)
            },
            "/face-recognition/register": {
                "post": _operation("Face Profile", "Store a 128-d face embedding", {200: "Registered", 400: "Invalid embedding"},
                                   body=_json_body(properties={"faceEmbedding": {"type": "array", "items": {"type": "number"}}}))
            },
            "/sessions": {
                "post": _operation("Sessions", "Create session and QR code",
                                   {201: "Created", 400: "Invalid schedule or past date"},
                                   body=_json_body("SessionCreate")),
                "get": _operation("Sessions", "List own sessions", {200: "OK"})
            },
            "/sessions/{ticket_id}": {
                "parameters": [ticket_path],
                "get": _operation("Sessions", "Session details with attendance", {200: "OK", 403: "Not owner", 404: "Not found"}),
                "put": _operation("Sessions", "Update session before it starts", {200: "Updated", 400: "Already started"}),
                "delete": _operation("Sessions", "Delete session before it starts", {200: "Deleted", 400: "Already started"})
            },
            "/sessions/{ticket_id}/regenerate-token": {
                "parameters": [ticket_path],
                "post": _operation("Sessions", "Rotate token and QR code", {200: "Rotated"})
            },
            "/sessions/{ticket_id}/revoke": {
                "parameters": [ticket_path],
                "post": _operation("Sessions", "Stop accepting attendance", {200: "Revoked"})
            },
            "/attendance": {
                "post": _operation("Attendance", "Mark attendance",
                                   {201: "Accepted", 400: "Rejected", 409: "Already marked"},
                                   body=_json_body("AttendanceRequest")),
                "get": _operation("Attendance", "Filter records by subject and ticket", {200: "OK"})
            },
            "/attendance/my-records": {
                "get": _operation("Attendance", "Own attendance with stats", {200: "OK"})
            },
            "/attendance/{record_id}": {
                "parameters": [record_path],
                "put": _operation("Attendance", "Revise status or remarks", {200: "Updated", 404: "Not found"}),
                "delete": _operation("Attendance", "Delete record", {200: "Deleted", 404: "Not found"})
            }
        }
    }

from mywork.schemas.common import ErrorOut

# Envelope `code` and a short summary for every status the API answers with.
ERROR_CODES: dict[int, tuple[str, str]] = {
    400: ("bad_request", "Invalid input or unresolvable reference"),
    401: ("unauthorized", "Missing or invalid credentials"),
    403: ("forbidden", "Caller is not allowed to do this"),
    404: ("not_found", "Job, request or invite not found"),
    409: ("conflict", "Concurrent write on the same record"),
    429: ("rate_limited", "Too many failed login attempts"),
    500: ("internal_error", "Internal server error"),
}


def error_code(status_code: int) -> str:
    return ERROR_CODES.get(status_code, ("http_error", ""))[0]


def error_responses(*status_codes: int) -> dict[int, dict]:
    """OpenAPI `responses` entries documenting the error envelope for each status."""
    documented = {}
    for status_code in status_codes:
        code, summary = ERROR_CODES.get(status_code, ("http_error", "HTTP error"))
        example = {
            "error": {
                "code": code,
                "message": summary,
                "request_id": "3f1c2a9e-request-id",
                "path": "/jobs/{jobId}",
                "details": None,
            }
        }
        documented[status_code] = {
            "model": ErrorOut,
            "description": summary,
            "content": {"application/json": {"example": example}},
        }
    return documented

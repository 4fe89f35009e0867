"""HTTP primitives: immutable Request, Response, and Headers."""

from perch.http.headers import Headers
from perch.http.request import Request
from perch.http.response import Response, error_response, json_response

__all__ = ["Headers", "Request", "Response", "error_response", "json_response"]

"""
HTTP Trigger Base Class.

Abstract base class for all Azure Functions HTTP triggers providing consistent
infrastructure patterns for request/response handling.

Concrete triggers return either a plain dict (200 JSON) or a TriggerResponse
when they need another status code or content type (202 accepted, 412
precondition bodies, the HTML landing page).

Exports:
    BaseHttpTrigger: Base class for HTTP triggers
    TriggerResponse: Explicit status / body / mimetype from process_request
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, Union, List
import uuid
import json
from datetime import datetime, timezone

import azure.functions as func
from exceptions import PreconditionFailedError
from util_logger import LoggerFactory
from util_logger import ComponentType


_TRUTHY = ("1", "true", "yes")


@dataclass
class TriggerResponse:
    """Response with an explicit status code (and optionally non-JSON body)."""

    body: Union[Dict[str, Any], str]
    status_code: int = 200
    mimetype: str = "application/json"


class BaseHttpTrigger(ABC):
    """
    Abstract base class for Azure Functions HTTP triggers.

    Provides consistent infrastructure for HTTP request/response handling,
    parameter extraction, error handling, and logging patterns.
    """

    def __init__(self, trigger_name: str):
        """
        Initialize HTTP trigger with name for logging context.

        Args:
            trigger_name: Name of the trigger for logging (e.g., "run_status", "landing")
        """
        self.trigger_name = trigger_name
        self.logger = LoggerFactory.create_logger(ComponentType.TRIGGER, f"HttpTrigger.{trigger_name}")

    # ========================================================================
    # ABSTRACT METHODS - Must be implemented by concrete triggers
    # ========================================================================

    @abstractmethod
    def process_request(self, req: func.HttpRequest, **bindings) -> Union[Dict[str, Any], TriggerResponse]:
        """
        Process the HTTP request and return response data.

        This is where business logic goes. Should raise appropriate exceptions
        for error conditions that will be handled by the base class.

        Args:
            req: Azure Functions HTTP request object
            bindings: Output bindings passed through from function_app.py

        Returns:
            Dictionary to be serialized as JSON (200), or a TriggerResponse

        Raises:
            ValueError: For client errors (400)
            PermissionError: For authorization errors (403)
            FileNotFoundError: For not found errors (404)
            PreconditionFailedError: For missing prerequisites (412)
            Exception: For internal server errors (500)
        """
        pass

    @abstractmethod
    def get_allowed_methods(self) -> List[str]:
        """
        Return list of allowed HTTP methods for this trigger.

        Returns:
            List of HTTP methods (e.g., ["GET"], ["POST"], ["GET", "POST"])
        """
        pass

    # ========================================================================
    # CONCRETE INFRASTRUCTURE METHODS
    # ========================================================================

    def handle_request(self, req: func.HttpRequest, **bindings) -> func.HttpResponse:
        """
        Main entry point for HTTP request handling.

        Provides consistent error handling, logging, and response formatting.

        Args:
            req: Azure Functions HTTP request object
            bindings: Output bindings (e.g. the run queue func.Out)

        Returns:
            Azure Functions HTTP response
        """
        request_id = self._generate_request_id()

        self.logger.info(
            f"🌐 [{self.trigger_name}] Request {request_id} started: "
            f"{req.method} {req.url}"
        )

        try:
            # Validate HTTP method
            if req.method not in self.get_allowed_methods():
                return self._create_error_response(
                    error="Method not allowed",
                    message=f"Method {req.method} not allowed. Allowed: {', '.join(self.get_allowed_methods())}",
                    status_code=405,
                    request_id=request_id
                )

            response_data = self.process_request(req, **bindings)

            if isinstance(response_data, TriggerResponse):
                response = self._create_response(response_data, request_id)
            else:
                response = self._create_success_response(response_data, request_id)

            self.logger.info(
                f"✅ [{self.trigger_name}] Request {request_id} completed ({response.status_code})"
            )

            return response

        except ValueError as e:
            # Client errors (400)
            self.logger.warning(f"❌ [{self.trigger_name}] Client error: {e}")
            return self._create_error_response(
                error="Bad request",
                message=str(e),
                status_code=400,
                request_id=request_id
            )

        except PermissionError as e:
            # Authorization errors (403)
            self.logger.warning(f"🚫 [{self.trigger_name}] Permission denied: {e}")
            return self._create_error_response(
                error="Forbidden",
                message=str(e),
                status_code=403,
                request_id=request_id
            )

        except FileNotFoundError as e:
            # Not found errors (404)
            self.logger.info(f"🔍 [{self.trigger_name}] Not found: {e}")
            return self._create_error_response(
                error="Not found",
                message=str(e),
                status_code=404,
                request_id=request_id
            )

        except PreconditionFailedError as e:
            # Missing prerequisite such as MSAuth.json (412)
            self.logger.warning(f"⛔ [{self.trigger_name}] Precondition failed: {e}")
            return self._create_error_response(
                error="Precondition failed",
                message=str(e),
                status_code=412,
                request_id=request_id,
                details=e.details
            )

        except Exception as e:
            # Internal server errors (500)
            self.logger.error(f"💥 [{self.trigger_name}] Internal error: {e}")
            import traceback
            self.logger.debug(f"📍 Full traceback: {traceback.format_exc()}")

            return self._create_error_response(
                error="Internal server error",
                message=str(e),
                status_code=500,
                request_id=request_id,
                include_debug_info=True
            )

    # ========================================================================
    # UTILITY METHODS FOR SUBCLASSES
    # ========================================================================

    def get_param(self, req: func.HttpRequest, *names: str) -> Optional[str]:
        """
        First non-empty value among names, from the query string and then
        (for POST) a JSON object body.
        """
        for name in names:
            value = req.params.get(name)
            if value and str(value).strip():
                return str(value).strip()

        body = self._json_body_or_none(req)
        if body:
            for name in names:
                value = body.get(name)
                if value is not None and str(value).strip():
                    return str(value).strip()
        return None

    def is_truthy_param(self, req: func.HttpRequest, *names: str) -> bool:
        """1/true/yes (case-insensitive) on any of the names."""
        value = self.get_param(req, *names)
        return bool(value) and value.lower() in _TRUTHY

    def get_base_url(self, req: func.HttpRequest) -> Optional[str]:
        """scheme://host of the caller-facing endpoint (honours reverse-proxy headers)."""
        host = req.headers.get("x-forwarded-host") or req.headers.get("host")
        if not host:
            return None
        proto = req.headers.get("x-forwarded-proto") or "https"
        return f"{proto}://{host}"

    # ========================================================================
    # PRIVATE INFRASTRUCTURE METHODS
    # ========================================================================

    @staticmethod
    def _json_body_or_none(req: func.HttpRequest) -> Optional[Dict[str, Any]]:
        try:
            body = req.get_json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def _generate_request_id(self) -> str:
        """Generate unique request ID for tracing."""

        return str(uuid.uuid4())[:8]

    def _create_response(self, response: TriggerResponse, request_id: str) -> func.HttpResponse:
        """Response with the status and content type the trigger chose."""
        if isinstance(response.body, dict):
            body = json.dumps({**response.body, "request_id": request_id}, default=str)
        else:
            body = response.body

        return func.HttpResponse(
            body,
            status_code=response.status_code,
            mimetype=response.mimetype,
            headers={"X-Request-ID": request_id}
        )

    def _create_success_response(self, data: Dict[str, Any], request_id: str) -> func.HttpResponse:
        """Create standardized success response."""
        response_data = {
            **data,
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        return func.HttpResponse(
            json.dumps(response_data, default=str),
            status_code=200,
            mimetype="application/json",
            headers={"X-Request-ID": request_id}
        )

    def _create_error_response(self, error: str, message: str, status_code: int,
                             request_id: str, include_debug_info: bool = False,
                             details: Optional[Dict[str, Any]] = None) -> func.HttpResponse:
        """Create standardized error response."""
        response_data = {
            "ok": False,
            "error": error,
            "message": message,
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        if details:
            response_data.update(details)

        if include_debug_info:
            # Add debug information for 500 errors
            response_data["debug"] = {
                "trigger_name": self.trigger_name,
                "python_version": __import__("sys").version.split()[0]
            }

        return func.HttpResponse(
            json.dumps(response_data, default=str),
            status_code=status_code,
            mimetype="application/json",
            headers={"X-Request-ID": request_id}
        )

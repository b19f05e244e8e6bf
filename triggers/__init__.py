"""
Triggers Package.

Azure Functions HTTP trigger implementations.

HTTP Endpoints:
    /api/create-bridge-msauth-async: Queue an asynchronous run (202)
    /api/run-status: Poll a queued run
    /api/create-bridge-msauth: Synchronous run with the bundled session
    /api/create-bridge: Synchronous run with manual sign-in
    /api/create-bridge-workspace: Synchronous run on Playwright Workspaces
    /api/msauth-preflight: Auth-state diagnostics
    /api/landing: HTML landing page

Exports:
    Base classes only; trigger instances are imported from their modules
"""

# Only import base classes to avoid initialization at import time
from .http_base import BaseHttpTrigger, TriggerResponse

__all__ = [
    'BaseHttpTrigger',
    'TriggerResponse',
]

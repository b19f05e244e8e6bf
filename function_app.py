"""
Azure Functions entry point for the Create Bridge automation.

Opens an incident in the incident portal and runs its "Create bridge"
action in a real browser (Playwright), authenticated with a stored
session (MSAuth.json) resolved from the function root, Key Vault, a blob
URL or a blob container.

Architecture:
    HTTP (async) -> queued RunStatus blob -> run queue -> worker
                                                           |
                                          auth chain -> child process
                                          (python -m automation.create_bridge)
                                                           |
                                          RunStatus blob <- exit code + output
                                                           |
                                                 report upload (optional)

Exports:
    app: Azure Function App instance

Endpoints:
    Async:
        GET/POST /api/create-bridge-msauth-async?incidentId= - Queue a run (202)
        GET      /api/run-status?runId= - Poll a run

    Synchronous:
        GET/POST /api/create-bridge-msauth?incidentId= - Bundled MSAuth.json
        GET/POST /api/create-bridge?incidentId= - Manual sign-in
        GET/POST /api/create-bridge-workspace?incidentId= - Playwright Workspaces

    Diagnostics:
        GET /api/msauth-preflight?fetch=1 - Auth-state sources and validation
        GET /api/landing - HTML landing page

    Queue:
        create-bridge-msauth-worker on RUN_QUEUE_NAME (AzureWebJobsStorage)

Environment Variables:
    AzureWebJobsStorage: Run status blobs, run queue, default MSAuth blob account
    KEYVAULT_URL + MSAUTH_SECRET_NAME: Key Vault source
    MSAUTH_BLOB_URL: Direct (SAS) URL source
    MSAUTH_BLOB_CONTAINER / MSAUTH_BLOB_NAME: Blob container source
    PLAYWRIGHT_SERVICE_URL: Playwright Workspaces endpoint
    BROWSER, HEADED, FUNCTION_TIMEOUT_MS, FUNCTION_TIMEOUT_MS_ASYNC: Browser run
"""

# ========================================================================
# IMPORTS
# ========================================================================

import logging

import azure.functions as func

# Suppress Azure Identity and Azure SDK authentication/HTTP logging
logging.getLogger("azure.identity").setLevel(logging.WARNING)
logging.getLogger("azure.identity._internal").setLevel(logging.WARNING)
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
logging.getLogger("azure.storage").setLevel(logging.WARNING)
logging.getLogger("azure.core").setLevel(logging.WARNING)
logging.getLogger("msal").setLevel(logging.WARNING)

from config import get_config
from config.env_validation import log_validation_results
from util_logger import LoggerFactory, ComponentType

from triggers.create_bridge import (
    create_bridge_manual_trigger,
    create_bridge_msauth_trigger,
    create_bridge_workspace_trigger,
)
from triggers.create_bridge_async import create_bridge_async_trigger
from triggers.landing import landing_trigger
from triggers.msauth_preflight import msauth_preflight_trigger
from triggers.run_status import run_status_trigger
from services.run_worker import process_run_message

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "FunctionApp")

# Format problems are logged, never fatal: endpoints report them per request
log_validation_results(logger)

RUN_QUEUE_NAME = get_config().storage.run_queue_name

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)


# ============================================================================
# ASYNC RUNS
# ============================================================================

@app.route(route="create-bridge-msauth-async", methods=["GET", "POST"])
@app.queue_output(arg_name="run_queue", queue_name=RUN_QUEUE_NAME, connection="AzureWebJobsStorage")
def create_bridge_msauth_async(req: func.HttpRequest, run_queue: func.Out[str]) -> func.HttpResponse:
    """Queue a create-bridge run and return 202 with its runId."""
    return create_bridge_async_trigger.handle_request(req, run_queue=run_queue)


@app.route(route="run-status", methods=["GET"])
def run_status(req: func.HttpRequest) -> func.HttpResponse:
    """Current status of a queued run."""
    return run_status_trigger.handle_request(req)


@app.queue_trigger(arg_name="msg", queue_name=RUN_QUEUE_NAME, connection="AzureWebJobsStorage")
def create_bridge_msauth_worker(msg: func.QueueMessage) -> None:
    """
    Run one queued create-bridge request.

    The worker records every failure in the run status blob and returns
    normally, so a failed run is never retried from the poison path.
    """
    logger.info(f"📨 Run message received (queue message id {msg.id}, dequeue count {msg.dequeue_count})")
    process_run_message(msg.get_body(), invocation_id=msg.id)


# ============================================================================
# SYNCHRONOUS RUNS
# ============================================================================

@app.route(route="create-bridge-msauth", methods=["GET", "POST"])
def create_bridge_msauth(req: func.HttpRequest) -> func.HttpResponse:
    return create_bridge_msauth_trigger.handle_request(req)


@app.route(route="create-bridge", methods=["GET", "POST"])
def create_bridge(req: func.HttpRequest) -> func.HttpResponse:
    return create_bridge_manual_trigger.handle_request(req)


@app.route(route="create-bridge-workspace", methods=["GET", "POST"])
def create_bridge_workspace(req: func.HttpRequest) -> func.HttpResponse:
    return create_bridge_workspace_trigger.handle_request(req)


# ============================================================================
# DIAGNOSTICS
# ============================================================================

@app.route(route="msauth-preflight", methods=["GET"])
def msauth_preflight(req: func.HttpRequest) -> func.HttpResponse:
    """Which MSAuth.json sources are configured, and does the fetched file validate."""
    return msauth_preflight_trigger.handle_request(req)


@app.route(route="landing", methods=["GET"])
def landing(req: func.HttpRequest) -> func.HttpResponse:
    return landing_trigger.handle_request(req)

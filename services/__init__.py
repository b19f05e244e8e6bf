"""
Services Package.

Business logic between the triggers and the Azure adapters:
    auth_state: MSAuth.json resolution chain and shape validation
    automation_runner: Child-process runner for the create-bridge flow
    run_worker: Queue-driven run lifecycle
    preflight: Auth-state diagnostics

Modules are imported directly (services.run_worker, ...) so that importing
the package never pulls in the Azure SDK clients.
"""

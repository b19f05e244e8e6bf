"""
Automation Package.

Browser-driven part of the create-bridge run. Runs in a child process
started by services.automation_runner (python -m automation.create_bridge);
the Functions host itself never imports Playwright.

Modules:
    incident_page: Page object with fallback selector lists
    session: Workspaces / CDP / local / manual browser acquisition
    report: index.html + steps.json for each run
    create_bridge: Seven-step flow and exit codes
"""

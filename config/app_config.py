"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - RuntimeConfig (hosting environment)
    - AuthStateConfig (MSAuth.json sources)
    - StorageConfig (run status blobs, run queue, reports)
    - BrowserConfig (browser selection and timeouts)

Exports:
    AppConfig: Main configuration class

Dependencies:
    pydantic: BaseModel for configuration validation
    config.defaults: Default value constants

Pattern:
    Composition over inheritance - domain configs are composed, not inherited.
"""

import os
from typing import List, Optional
from pydantic import BaseModel, Field

from .runtime_config import RuntimeConfig
from .auth_config import AuthStateConfig
from .storage_config import StorageConfig
from .browser_config import BrowserConfig
from .defaults import AppDefaults, LandingDefaults


class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.

    Each domain config manages its own validation and defaults.
    """

    # ========================================================================
    # Core Application Settings
    # ========================================================================

    debug_mode: bool = Field(
        default=AppDefaults.DEBUG_MODE,
        description="Enable debug mode for verbose diagnostics. "
                    "Set DEBUG_MODE=true in environment to enable."
    )

    environment: str = Field(
        default=AppDefaults.ENVIRONMENT,
        description="Environment name (dev, qa, prod)",
        examples=["dev", "qa", "prod"]
    )

    log_level: str = Field(
        default=AppDefaults.LOG_LEVEL,
        description="Logging level for application diagnostics"
    )

    # ========================================================================
    # Landing Page
    # ========================================================================

    landing_base_url: Optional[str] = Field(
        default=None,
        description="CREATE_BRIDGE_BASE_URL - absolute base for links on the landing page"
    )

    landing_endpoint: str = Field(
        default=LandingDefaults.ENDPOINT,
        description="CREATE_BRIDGE_ENDPOINT - function the landing form submits to"
    )

    landing_incidents: List[str] = Field(
        default_factory=list,
        description="LANDING_INCIDENTS - comma-separated incident IDs shown as quick links"
    )

    # ========================================================================
    # Domain Configs
    # ========================================================================

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    auth: AuthStateConfig = Field(default_factory=AuthStateConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    browser: BrowserConfig

    def should_log_verbose(self) -> bool:
        debug_logging = os.environ.get("DEBUG_LOGGING", "false").lower() == "true"
        return self.debug_mode or debug_logging

    # ========================================================================
    # Factory Methods
    # ========================================================================

    @classmethod
    def from_environment(cls):
        """Load all configs from environment."""
        incidents = os.environ.get("LANDING_INCIDENTS", "")
        return cls(
            debug_mode=os.environ.get("DEBUG_MODE", str(AppDefaults.DEBUG_MODE).lower()).lower() == "true",
            environment=os.environ.get("ENVIRONMENT", AppDefaults.ENVIRONMENT),
            log_level=os.environ.get("LOG_LEVEL", AppDefaults.LOG_LEVEL),

            landing_base_url=os.environ.get("CREATE_BRIDGE_BASE_URL") or None,
            landing_endpoint=os.environ.get("CREATE_BRIDGE_ENDPOINT") or LandingDefaults.ENDPOINT,
            landing_incidents=[i.strip() for i in incidents.split(",") if i.strip()],

            runtime=RuntimeConfig.from_environment(),
            auth=AuthStateConfig.from_environment(),
            storage=StorageConfig.from_environment(),
            browser=BrowserConfig.from_environment(),
        )

"""
Provider Validation Module
Validates provider configurations on startup
"""
import os
import logging
from typing import List, Optional, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""
    provider: str
    setting: str
    is_valid: bool
    message: str


class ProviderValidator:
    """
    Validates provider configurations at startup.
    
    Ensures the lead backend is reachable by configuration before the
    console starts accepting requests. The auditor key and Redis are
    optional: without them the auditor runs its heuristic and the recovery
    slot lives in memory.
    """
    
    REQUIRED_ENV_VARS = {
        "database": [
            ("SUPABASE_URL", "Supabase lead store"),
            ("SUPABASE_SERVICE_KEY", "Supabase lead store"),
        ],
    }
    
    OPTIONAL_ENV_VARS = {
        "auditor": [("GROQ_API_KEY", "Groq note auditor (heuristic fallback otherwise)")],
        "cache": [("REDIS_URL", "Redis recovery slot (in-memory fallback otherwise)")],
    }
    
    def __init__(self, strict: bool = False, lead_store_backend: str = "supabase"):
        """
        Initialize validator.
        
        Args:
            strict: If True, treat warnings as errors
            lead_store_backend: Supabase variables are only required for "supabase"
        """
        self.strict = strict
        self.lead_store_backend = lead_store_backend
        self.results: List[ValidationResult] = []
    
    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        """
        Validate all provider configurations.
        
        Returns:
            Tuple of (all_valid, list of results)
        """
        self.results = []
        
        if self.lead_store_backend == "supabase":
            for provider, vars_list in self.REQUIRED_ENV_VARS.items():
                for env_var, description in vars_list:
                    if not os.getenv(env_var):
                        self._add_error(provider, env_var,
                            f"{description} requires {env_var} to be set")
                    else:
                        self._add_success(provider, env_var, f"{description} configured")
        else:
            self._add_warning("database", "LEAD_STORE_BACKEND",
                f"using '{self.lead_store_backend}' lead store (data is not persisted)")
        
        for provider, vars_list in self.OPTIONAL_ENV_VARS.items():
            for env_var, description in vars_list:
                if not os.getenv(env_var):
                    self._add_warning(provider, env_var, f"{description} not configured")
                else:
                    self._add_success(provider, env_var, f"{description} configured")
        
        errors = [r for r in self.results if not r.is_valid]
        return len(errors) == 0, self.results
    
    def _add_success(self, provider: str, setting: str, message: str):
        """Add successful validation result."""
        self.results.append(ValidationResult(
            provider=provider,
            setting=setting,
            is_valid=True,
            message=message
        ))
    
    def _add_error(self, provider: str, setting: str, message: str):
        """Add error validation result."""
        self.results.append(ValidationResult(
            provider=provider,
            setting=setting,
            is_valid=False,
            message=message
        ))
    
    def _add_warning(self, provider: str, setting: str, message: str):
        """Add warning validation result."""
        self.results.append(ValidationResult(
            provider=provider,
            setting=setting,
            is_valid=not self.strict,  # Warnings become errors in strict mode
            message=f"WARNING: {message}"
        ))
    
    def log_results(self):
        """Log all validation results."""
        errors = [r for r in self.results if not r.is_valid]
        warnings = [r for r in self.results if r.is_valid and "WARNING" in r.message]
        successes = [r for r in self.results if r.is_valid and "WARNING" not in r.message]
        
        if successes:
            logger.info("Provider configuration validated:")
            for r in successes:
                logger.info(f"  ✓ [{r.provider}] {r.message}")
        
        for r in warnings:
            logger.warning(f"  ⚠ [{r.provider}] {r.message}")
        
        if errors:
            logger.error("Provider configuration errors:")
            for r in errors:
                logger.error(f"  ✗ [{r.provider}] {r.message}")
    
    def get_error_summary(self) -> Optional[str]:
        """Get summary of errors for exception message."""
        errors = [r for r in self.results if not r.is_valid]
        if not errors:
            return None
        
        lines = ["Provider configuration errors:"]
        for r in errors:
            lines.append(f"  - {r.setting}: {r.message}")
        return "\n".join(lines)


def validate_providers_on_startup(strict: bool = False, lead_store_backend: str = "supabase") -> None:
    """
    Validate all providers at startup.
    
    Call this from the FastAPI lifespan.
    
    Raises:
        RuntimeError: If required configuration is missing
    """
    validator = ProviderValidator(strict=strict, lead_store_backend=lead_store_backend)
    all_valid, results = validator.validate_all()
    validator.log_results()
    
    if not all_valid:
        raise RuntimeError(validator.get_error_summary())
    
    logger.info("All provider configurations validated successfully")

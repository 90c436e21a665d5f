# =============================================================================
# ONEPOINT-SITE Configuration
# =============================================================================
"""
Environment configuration (config/environments/<env>.json) and .env loading.
"""

from sitepipe.config.config_loader import ConfigLoader, load_env

__all__ = ["ConfigLoader", "load_env"]

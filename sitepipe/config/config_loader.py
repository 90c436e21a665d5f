#!/usr/bin/env python3
"""
Configuration Loader

Loads environment-specific configuration from sitepipe/config/environments/<env>.json
and expands ${VARIABLE} placeholders from the process environment.

Environment selection:
    ConfigLoader("production")     # explicit
    SITE_ENV=staging               # via environment / .env
    (default)                      # development

Usage:
    python -m sitepipe.config.config_loader                 # print active config
    python -m sitepipe.config.config_loader --env production --check
"""

import argparse
import json
import os
import re
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from sitepipe.common.layout import PROJECT_ROOT

# =============================================================================
# CONFIGURATION
# =============================================================================

CONFIG_DIR = Path(__file__).parent / "environments"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_BASE_URL = "http://localhost:3000"

# Required in production unless the environment file sets "requiredEnv"
PRODUCTION_REQUIRED_ENV = [
    "SMTP_HOST",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SECRET_KEY",
    "SSL_CERT_PATH",
    "SSL_KEY_PATH",
]

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


# =============================================================================
# CREDENTIAL LOADING
# =============================================================================


def load_env() -> Optional[Path]:
    """Load .env from the site root or repository root. Returns the path loaded."""
    env_paths = []
    site_root = os.getenv("SITE_ROOT")
    if site_root:
        env_paths.append(Path(site_root) / ".env")
    env_paths.append(PROJECT_ROOT / ".env")
    env_paths.append(Path.cwd() / ".env")

    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


# =============================================================================
# CONFIG LOADER
# =============================================================================


class ConfigLoader:
    """Environment configuration with ${VAR} expansion and dotted lookups."""

    def __init__(self, environment: str = None, config_dir: Path = None):
        self.environment = environment or os.getenv("SITE_ENV") or DEFAULT_ENVIRONMENT
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self.config_path = self.config_dir / f"{self.environment}.json"

        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found for environment: {self.environment} ({self.config_path})"
            )

        with open(self.config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        self.config = self.replace_environment_variables(raw)

    @classmethod
    def replace_environment_variables(cls, obj: Any) -> Any:
        """Replace ${VARIABLE} placeholders; unknown variables are left as-is."""
        if isinstance(obj, str):
            return ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
        if isinstance(obj, list):
            return [cls.replace_environment_variables(item) for item in obj]
        if isinstance(obj, dict):
            return {key: cls.replace_environment_variables(value) for key, value in obj.items()}
        return obj

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get value by dotted key path, e.g. 'analytics.googleAnalytics'."""
        value = self.config
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_all(self) -> dict:
        return self.config

    def section(self, name: str) -> dict:
        """Top-level section as a dict (analytics, contact, security, seo, content...)."""
        value = self.get(name, {})
        return value if isinstance(value, dict) else {}

    def is_feature_enabled(self, feature_name: str) -> bool:
        return bool(self.get(f"features.{feature_name}", False))

    def is_debug_mode(self) -> bool:
        return bool(self.get("debug", False))

    def get_base_url(self) -> str:
        return self.get("baseUrl", DEFAULT_BASE_URL)

    def required_environment_variables(self) -> list:
        required = self.get("requiredEnv")
        if required is not None:
            return list(required)
        if self.environment == "production":
            return list(PRODUCTION_REQUIRED_ENV)
        return []

    def validate_environment(self) -> list:
        """Return missing required environment variables (empty list = valid)."""
        return [name for name in self.required_environment_variables() if not os.getenv(name)]


# =============================================================================
# CLI
# =============================================================================


def main(argv=None):
    parser = argparse.ArgumentParser(description="Show and check environment configuration")
    parser.add_argument("--env", help="Environment name (default: SITE_ENV or development)")
    parser.add_argument("--check", action="store_true", help="Fail if required environment variables are missing")
    args = parser.parse_args(argv)

    env_path = load_env()

    print("=" * 70)
    print("CONFIGURATION")
    print("=" * 70)
    print()
    if env_path:
        print(f"Loaded environment variables from: {env_path}")
    else:
        print("WARNING: No .env file found")

    try:
        config = ConfigLoader(args.env)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Environment: {config.environment}")
    print(f"Config file: {config.config_path}")
    print(f"Base URL:    {config.get_base_url()}")
    print(f"Debug:       {config.is_debug_mode()}")
    print()

    if config.is_debug_mode():
        print(json.dumps(config.get_all(), indent=2))
        print()

    if args.check:
        missing = config.validate_environment()
        if missing:
            print(f"  ✗ Missing required environment variables: {', '.join(missing)}")
            print("    Please check your .env file or environment configuration.")
            sys.exit(1)
        print("  ✓ All required environment variables present")

    print()
    print("Done.")


if __name__ == "__main__":
    main()

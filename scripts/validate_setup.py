#!/usr/bin/env python
"""Validate setup - check dependencies, configuration and upstream reachability."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("Unified Search - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 11):
        print_success("Python version >= 3.11")
    else:
        print_error("Python version < 3.11 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Configuration
    print_section("3. Configuration")

    try:
        # Add parent directory to path to import the package from a checkout
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from unified_search import config

        settings = config.load_settings()

        print_success("Config loaded successfully")
        print_info(f"  Embedding model: {settings.embedding_model}")
        print_info(f"  Embedding dimension: {settings.embedding_dimension or '(detected at runtime)'}")
        print_info(f"  Embedding URL: {settings.embedding_base_url}")
        print_info(f"  Index URL: {settings.index_base_url}")
        print_info(f"  Index name: {settings.index_name or '(not set)'}")
        print_info(f"  Timeout: {settings.timeout}s, attempts: {settings.max_attempts}")

        missing = settings.missing_fields()
        if missing:
            for name in missing:
                print_error(f"Missing setting: {name}")
            errors.append("Configuration incomplete")
            if settings.fallback_on_missing_config:
                print_warning("Searches will return sample fallback results")
                warnings.append("Fallback mode active")
        else:
            print_success("All credentials present")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Upstream services
    print_section("4. Upstream Services")

    if missing:
        print_warning("Skipping upstream checks until configuration is complete")
    else:
        from unified_search.search import Orchestrator

        report = await Orchestrator(settings).health()
        for name, passed in report.checks.items():
            if passed:
                print_success(f"{name:14} reachable")
            else:
                print_error(f"{name:14} failed")
        if not report.ok:
            print_info(f"  {report.error}")
            errors.append("Upstream health check failed")

    # 5. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
        print_info("  Start the service: hypercorn unified_search.main:app")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)

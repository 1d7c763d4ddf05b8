#!/usr/bin/env python3
"""
Development startup script.

Starts the cart service in development mode.
"""

import os
import sys
import shutil
import subprocess
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import pydantic_settings
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        print("  Please edit config/.env with your platform credentials")
        return True
    else:
        print("✗ No configuration file found")
        return False


def start_service():
    """Start the cart service with auto-reload."""
    port = os.getenv("PORT", "8001")
    print(f"\n🛒 Starting Cart Service on http://localhost:{port} ...")
    print(f"📍 API docs: http://localhost:{port}/docs")
    print("\nPress Ctrl+C to stop")

    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "cart_service.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", port,
        ],
        cwd=PROJECT_ROOT,
    )
    try:
        process.wait()
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        process.terminate()
        process.wait()
        print("Service stopped.")


def main():
    print("=" * 60)
    print("Storefront Cart Service - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    print("\n✓ All checks passed!")
    start_service()


if __name__ == "__main__":
    main()

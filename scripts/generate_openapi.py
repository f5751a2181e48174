"""Generate the OpenAPI specification from the FastAPI app.

Builds openapi.json without starting the server or touching a database, so
API consumers can generate clients from a committed file.

Usage:
    uv run python scripts/generate_openapi.py
"""

import json
import os
from pathlib import Path

# Telemetry off and a throwaway database URL: importing the app must not connect anywhere
os.environ["OTEL_ENABLED"] = "false"
os.environ.setdefault("SECRET_DATABASE_URL", "sqlite+aiosqlite://")

from inventory.main import app  # noqa: E402


DEFAULT_OUTPUT_PATH = Path(__file__).parent.parent / "openapi.json"


def main(output_path: Path = DEFAULT_OUTPUT_PATH) -> None:
    """Write the OpenAPI document (openapi.json next to pyproject.toml by default)."""
    spec = app.openapi()
    output_path.write_text(json.dumps(spec, indent=2) + "\n")
    print(f"✅ Generated: {output_path}")
    print(f"📄 Title: {spec.get('info', {}).get('title')}")
    print(f"🔢 Version: {spec.get('info', {}).get('version')}")
    print(f"🛣️  Paths: {len(spec.get('paths', {}))}")
    print(f"📦 Schemas: {len(spec.get('components', {}).get('schemas', {}))}")


if __name__ == "__main__":
    main()

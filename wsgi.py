"""ASGI entry point for hosts that import ``wsgi:app`` from a source checkout."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from csrank.api import app  # noqa: E402,F401

# uvicorn wsgi:app --host 0.0.0.0 --port $PORT

"""
Vercel serverless entrypoint.

Re-exports the assembled FastAPI application unchanged; Vercel sets
VERCEL=1, so nothing here binds a port.
"""

from pathlib import Path
import sys

backend_root = Path(__file__).resolve().parents[1]
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from bloodbank.main import app  # noqa: E402

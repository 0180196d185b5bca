"""Root-level entrypoint: ``python main.py`` serves the API on PORT (default 5000)."""

from pathlib import Path
import sys

backend_root = Path(__file__).resolve().parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from bloodbank.main import app, run  # noqa: E402

if __name__ == "__main__":
    run()

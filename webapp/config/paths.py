"""Server configuration."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).parent.parent

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

import os
import secrets
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

# Security Configuration
ORIGIN = os.getenv("ORIGIN", "http://localhost:8000")
SESSION_SECRET = os.getenv("SESSION_SECRET", secrets.token_hex(32))

# Application Configuration
SNAPSHOT_DIR = os.getenv("SNAPSHOT_DIR", os.path.join(os.getcwd(), "data", "snapshots"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "NONE").upper()

# Assessment Configuration
DECISION_TREE = os.getenv("DECISION_TREE", "standard")
# When unset, the selected tree decides whether explanations are mandatory
REQUIRE_EXPLANATION = _flag("REQUIRE_EXPLANATION", "true") if os.getenv("REQUIRE_EXPLANATION") is not None else None
KEEP_METADATA_ON_RESET = _flag("KEEP_METADATA_ON_RESET", "true")
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))

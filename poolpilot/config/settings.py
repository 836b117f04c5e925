import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../../.env")
load_dotenv(env_path)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # POOLPILOT PROCESS SETTINGS (Environment-Based)
    # ═══════════════════════════════════════════════════════════════════
    # Launch parameters (dry run, fee, keypair) come from the JSON config
    # file; these only shape the process itself.

    # Console output
    SILENT_MODE = _env_flag("POOLPILOT_SILENT", False)
    LOG_LEVEL = os.getenv("POOLPILOT_LOG_LEVEL", "INFO").upper()

    # Paths
    LOG_DIR = os.getenv(
        "POOLPILOT_LOG_DIR",
        os.path.abspath(os.path.join(os.path.dirname(__file__), "../../logs")),
    )

    # Submission
    RETRY_DELAY_SEC = float(os.getenv("POOLPILOT_RETRY_DELAY_SEC", "1.0"))
    MAX_RETRY_DELAY_SEC = float(os.getenv("POOLPILOT_MAX_RETRY_DELAY_SEC", "8.0"))
    CONFIRM_SLEEP_SEC = float(os.getenv("POOLPILOT_CONFIRM_SLEEP_SEC", "0.5"))

    # Proof upload
    PROOF_UPLOAD_CONCURRENCY = int(os.getenv("POOLPILOT_PROOF_UPLOAD_CONCURRENCY", "8"))
    PROOF_UPLOAD_MAX_ATTEMPTS = int(os.getenv("POOLPILOT_PROOF_UPLOAD_MAX_ATTEMPTS", "5"))

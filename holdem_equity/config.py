"""Runtime configuration read from the environment."""

from __future__ import annotations

import os

# Trials used when a request does not specify its own count
DEFAULT_TRIALS = int(os.getenv("EQUITY_DEFAULT_TRIALS", "10000"))

# Largest trial count accepted at the API boundary
MAX_TRIALS = int(os.getenv("EQUITY_MAX_TRIALS", "200000"))

# Completed trials between progress reports
PROGRESS_INTERVAL = int(os.getenv("EQUITY_PROGRESS_INTERVAL", "1000"))

# Threads available for background simulations
MAX_WORKERS = int(os.getenv("EQUITY_MAX_WORKERS", "2"))

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "1") != "0"

CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

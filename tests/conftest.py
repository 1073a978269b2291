import os

# Config is read at import time; turn the rate limiter off before any
# test module imports the package
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

import os

# ---------- APP CONFIG ---------- #

DB_PATH = os.environ.get("SONGPRINT_DB_PATH", "fingerprints.db")
LOG_LEVEL = os.environ.get("SONGPRINT_LOG_LEVEL", "DEBUG")

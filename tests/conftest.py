import os

os.environ.setdefault("PLACESCOUT_DISABLE_FILE_LOGS", "1")
os.environ.setdefault("PLACESCOUT_WAIT_MULTIPLIER", "0")

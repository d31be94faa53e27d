import os

# Run Qt without a display server when none is available (e.g. CI).
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import os

# Headless test runs: let pytest-qt create its QApplication without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import os
import sys

# Put src/ on sys.path so the flat modules (`import uv_protection`) resolve
# when running tests from the repository root.
CURRENT_DIR = os.path.dirname(__file__)
SRC_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, "..", "src"))
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

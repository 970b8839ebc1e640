# Ensure the repo root is on sys.path when pytest runs without an installed package
import sys
from pathlib import Path

_root = Path(__file__).resolve().parent.parent
_str_root = str(_root)
if _str_root not in sys.path:
    sys.path.insert(0, _str_root)

import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).parent))
root_dir = pathlib.Path(__file__).resolve().parents[1]
# Ensure the src package is importable
sys.path.append(str(root_dir / "src"))

from fixtures.okx import snapshot, flat_then_spike  # noqa: E402, F401

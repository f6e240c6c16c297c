# scripts/__init__.py
import sys
from pathlib import Path


class ScriptUtils:
    @staticmethod
    def get_project_root() -> Path:
        """Get the absolute path to the project root directory."""
        return Path(__file__).parent.parent.absolute()

    @staticmethod
    def setup_project_path() -> None:
        """Add project root to Python path to allow importing nocram and config."""
        root_dir = str(ScriptUtils.get_project_root())
        if root_dir not in sys.path:
            sys.path.append(root_dir)

import os
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create missing directories.
def ensure_directory(path: Path):
    path.mkdir(parents=True,exist_ok=True)
    return path

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    data: Path
    logs: Path

    @staticmethod
    def build():
        # Everything user-specific lives in the data folder. PT_DATA_DIR wins, so tests and portable setups can
        # redirect it.
        override = os.getenv("PT_DATA_DIR")
        if override:
            data = ensure_directory(Path(override))
        else:
            data = ensure_directory(Path.home() / ".presenter-timer")

        logs = ensure_directory(data / "logs")

        return ProjectPaths(
            data = data,
            logs = logs,
        )
PATHS = ProjectPaths.build()

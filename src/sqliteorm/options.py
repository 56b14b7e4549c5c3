from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from libb import ConfigOptions

__all__ = [
    'OrmOptions',
]


@dataclass
class OrmOptions(ConfigOptions):
    """Options

    paths maps each logical database name to its SQLite file.

    Engine options:
    - timeout: Seconds SQLite waits on a locked database file (default: 5)
    - echo: Log every statement through SQLAlchemy (default: False)
    - create_missing: Create missing directories and files on startup (default: True)
    """
    paths: dict = None
    timeout: float = 5.0
    echo: bool = False
    create_missing: bool = True

    def __post_init__(self):
        if self.paths is None:
            self.paths = {}
        if not isinstance(self.paths, Mapping):
            raise ValueError(f'paths must be a mapping, got {type(self.paths).__name__}')
        self.paths = {str(name): Path(path) for name, path in self.paths.items()}
        if self.timeout is None or self.timeout < 0:
            raise ValueError('timeout must be a non-negative number of seconds')

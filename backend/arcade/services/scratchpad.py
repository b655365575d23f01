import copy
import threading
from typing import Dict, List


class LevelScratchpad:
    """Process-local difficulty -> obstacle list mapping.

    Nothing is persisted; every worker process holds its own copy and a
    restart empties it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._levels: Dict[str, List[dict]] = {}

    def snapshot(self) -> Dict[str, List[dict]]:
        with self._lock:
            return copy.deepcopy(self._levels)

    def save_level(self, difficulty: str, obstacles: List[dict]) -> None:
        with self._lock:
            self._levels[difficulty] = copy.deepcopy(obstacles)

    def clear_level(self, difficulty: str) -> None:
        with self._lock:
            self._levels.pop(difficulty, None)

    def clear_all(self) -> None:
        with self._lock:
            self._levels = {}


scratchpad = LevelScratchpad()

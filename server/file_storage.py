"""File-based storage implementation."""

import json
import logging
import os

from core.interfaces import Storage, SLOTS

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """One JSON file per slot inside a state directory."""

    def __init__(self, config_file: str = None, state_dir: str = None):
        self.config_file = config_file or os.path.expanduser('~/.config/nihongo/config.json')
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('NIHONGO_STATE_DIR') or project_root

    def _get_slot_file(self, slot: str) -> str:
        if slot not in SLOTS:
            raise ValueError(f"Unknown storage slot: {slot}")
        return os.path.join(self.state_dir, f'nihongo_{slot}.json')

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load(self, slot: str):
        slot_file = self._get_slot_file(slot)
        if not os.path.exists(slot_file):
            return None
        try:
            with open(slot_file, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable {slot_file}: {e}")
            return None

    def save(self, slot: str, value) -> None:
        slot_file = self._get_slot_file(slot)
        os.makedirs(self.state_dir, exist_ok=True)
        with open(slot_file, 'w', encoding='utf-8') as f:
            json.dump(value, f, indent=2, ensure_ascii=False)

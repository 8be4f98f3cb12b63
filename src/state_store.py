"""
State Store - JSON file holding persisted resource state.

Only successful reconciler results are written here; a failed operation
leaves the stored state of its resource untouched.
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateStoreError(Exception):
    """Raised when the state file cannot be read or has an unknown layout."""


class StateStore:
    """
    File-backed store of resource state keyed by type name and identifier.

    Layout: {"version": 1, "resources": {type_name: {resource_id: state}}}
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"version": STATE_VERSION, "resources": {}}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"Cannot read state file {self.path}: {e}") from e

        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            raise StateStoreError(
                f"State file {self.path} has unsupported version "
                f"{data.get('version') if isinstance(data, dict) else None!r}"
            )
        data.setdefault("resources", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, type_name: str, resource_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored state of a resource, or None if untracked."""
        return self._load()["resources"].get(type_name, {}).get(resource_id)

    def put(self, type_name: str, resource_id: str, state: Dict[str, Any]) -> None:
        """Store the state of a resource, replacing any previous state."""
        data = self._load()
        data["resources"].setdefault(type_name, {})[resource_id] = state
        self._save(data)
        logger.debug(f"Persisted {type_name} {resource_id} to {self.path}")

    def remove(self, type_name: str, resource_id: str) -> bool:
        """
        Stop tracking a resource.

        Returns:
            True if the resource was tracked.
        """
        data = self._load()
        resources = data["resources"].get(type_name, {})
        if resource_id not in resources:
            return False
        del resources[resource_id]
        if not resources:
            del data["resources"][type_name]
        self._save(data)
        logger.debug(f"Removed {type_name} {resource_id} from {self.path}")
        return True

    def list_resources(self, type_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List tracked resources.

        Returns:
            List of {"type": ..., "id": ..., "state": ...} dicts sorted by
            type name and identifier.
        """
        entries = []
        for stored_type, resources in sorted(self._load()["resources"].items()):
            if type_name is not None and stored_type != type_name:
                continue
            for resource_id, state in sorted(resources.items()):
                entries.append({"type": stored_type, "id": resource_id, "state": state})
        return entries

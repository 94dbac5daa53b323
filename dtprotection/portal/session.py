"""
Portal credentials

A ``PortalSession`` owns one bearer token and the profile blob cached with
it. API calls take the session explicitly; there is no module level token.
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional


class MemoryTokenStore:
    """Keeps values for the lifetime of the process"""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileTokenStore:
    """JSON file store, e.g. for a CLI that must survive restarts"""

    def __init__(self, path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as f:
            return json.load(f)

    def _dump(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class PortalSession:
    """Token and cached profile for one portal (``admin`` or ``client``)"""

    def __init__(self, portal: str, store=None):
        self.portal = portal
        self.store = store if store is not None else MemoryTokenStore()
        self.token_key = f"{portal}Token"
        self.profile_key = f"{portal}Data"

    @property
    def token(self) -> Optional[str]:
        return self.store.get(self.token_key)

    @property
    def profile(self) -> Optional[dict]:
        return self.store.get(self.profile_key)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def save(self, token: str, profile: Optional[dict] = None) -> None:
        self.store.set(self.token_key, token)
        if profile is not None:
            self.store.set(self.profile_key, profile)

    def cache_profile(self, profile: dict) -> None:
        self.store.set(self.profile_key, profile)

    def clear_token(self) -> None:
        self.store.delete(self.token_key)

    def clear(self) -> None:
        self.store.delete(self.token_key)
        self.store.delete(self.profile_key)

# storefront/tokens.py
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token_data"
REFRESH_THRESHOLD = 5 * 60  # seconds before expiry


class TokenManager:
    def __init__(self, storage, clock: Callable[[], float] = time.time):
        self.storage = storage
        self.clock = clock

    def set_token(self, access_token: str, expires_in: int, token_type: str = "bearer") -> Dict[str, Any]:
        data = {
            "access_token": access_token,
            "token_type": token_type,
            "expires_in": int(expires_in),
            "expires_at": self.clock() + int(expires_in),
        }
        self.storage.set_item(TOKEN_KEY, json.dumps(data))
        return data

    def get_token_data(self) -> Optional[Dict[str, Any]]:
        raw = self.storage.get_item(TOKEN_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            expires_at = float(data["expires_at"])
            data["access_token"]
        except (ValueError, TypeError, KeyError) as e:
            logger.error("Failed to retrieve token data: %s", e)
            self.clear_token()
            return None
        if self.clock() >= expires_at:
            self.clear_token()
            return None
        return data

    def get_token(self) -> Optional[str]:
        data = self.get_token_data()
        return data["access_token"] if data else None

    def is_token_expiring_soon(self) -> bool:
        data = self.get_token_data()
        if not data:
            return False
        return float(data["expires_at"]) - self.clock() <= REFRESH_THRESHOLD

    def clear_token(self) -> None:
        self.storage.remove_item(TOKEN_KEY)

    def is_authenticated(self) -> bool:
        return self.get_token() is not None

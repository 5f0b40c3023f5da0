# storefront/services/setting_service.py
from typing import MutableMapping

from sqlalchemy.orm import Session

from storefront.repos.setting_repo import SettingRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


class SettingService:
    """
    Key-value ustawien sklepu.
    Cache-aside: odczyt przez cache, zapis do bazy i uniewaznienie klucza.
    Cache tworzy proces (punkt skladania aplikacji) i podaje go z zewnatrz.
    """

    def __init__(self, db: Session, cache: MutableMapping[str, str | None]):
        self.repo = SettingRepo(db)
        self.cache = cache

    def get(self, key: str, default: str | None = None) -> str | None:
        value = self.cache.get(key, _MISSING)
        if value is _MISSING:
            setting = self.repo.get(key)
            value = setting.value if setting is not None else None
            self.cache[key] = value
        return default if value is None else value

    def set(self, key: str, value: str | None) -> None:
        self.repo.upsert(key, value)
        self.cache.pop(key, None)
        logger.info(f"Setting {key} updated")

    def forget(self, key: str) -> None:
        self.repo.delete(key)
        self.cache.pop(key, None)

    def flush_cache(self) -> None:
        self.cache.clear()

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.setting import SettingModel


class SettingRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> SettingModel | None:
        return self.db.execute(
            select(SettingModel).where(SettingModel.key == key)
        ).scalar_one_or_none()

    def upsert(self, key: str, value: str | None) -> SettingModel:
        setting = self.get(key)
        if setting is None:
            setting = SettingModel(key=key, value=value)
            self.db.add(setting)
        else:
            setting.value = value
        self.db.commit()
        return setting

    def delete(self, key: str) -> int:
        result = self.db.execute(delete(SettingModel).where(SettingModel.key == key))
        self.db.commit()
        return result.rowcount

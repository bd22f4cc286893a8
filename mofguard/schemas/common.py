# mofguard/schemas/common.py
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AppBaseModel(BaseModel):
    """모든 모델의 부모 클래스: V2 설정 적용"""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
    )


class SystemStatus(str, Enum):
    OFFLINE = "OFFLINE"
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class LogCategory(str, Enum):
    INFO = "INFO"
    ALERT = "ALERT"
    ACTION = "ACTION"


class CardTone(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

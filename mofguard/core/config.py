# mofguard/core/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """모니터 환경 설정."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =========================================================
    # 1. 프로젝트 기본 정보
    # =========================================================
    PROJECT_NAME: str = Field(default="MOF Guard", description="콘솔 헤더에 표시될 이름")

    APP_ENV: Literal["local", "dev", "test", "prod"] = Field(
        default="local",
        description="실행 환경 (local/dev/test/prod)",
    )

    # =========================================================
    # 2. MOF 흡착 컬럼 (Cu2+ 흡착 용량 >= 250 mg/g, 10 kg 카트리지)
    # =========================================================
    MOF_CAPACITY_MG_PER_G: float = Field(
        default=250.0, gt=0, description="단위 질량당 흡착 용량 (mg/g)"
    )
    MOF_TOTAL_MASS_G: float = Field(
        default=10_000.0, gt=0, description="충진된 MOF 총 질량 (g)"
    )

    WARNING_THRESHOLD: float = Field(
        default=0.85, gt=0, lt=1, description="경고 진입 포화도 (fraction)"
    )
    CAPACITY_THRESHOLD: float = Field(
        default=0.90, gt=0, le=1, description="교체 요청(CRITICAL) 포화도 (fraction)"
    )

    # =========================================================
    # 3. 시뮬레이션 시간 / 유량
    # =========================================================
    # 3600 -> 실제 1초 = 모의 1시간. 약 41시간 용량이 40초 남짓에 소진됨
    TIME_ACCELERATION: float = Field(default=3600.0, gt=0)
    TICK_INTERVAL_S: float = Field(default=1.5, gt=0, description="tick 주기 (s)")

    DEFAULT_FLOW_RATE_LPM: float = Field(default=20.0, ge=0, description="기본 유량 (L/min)")
    FLOW_RATE_MAX_LPM: float = Field(
        default=500.0, gt=0, description="CLI 입력 상한 (코어는 강제하지 않음)"
    )

    # =========================================================
    # 4. 유입수 / 유출수 모델
    # =========================================================
    INLET_BASE_MGL: float = Field(default=50.0, gt=0, description="유입 Cu2+ 기준 농도")
    INLET_NOISE_MGL: float = Field(default=2.0, ge=0, description="유입 농도 변동폭 (±)")
    OUTLET_FLOOR_MGL: float = Field(default=0.01, gt=0, description="유출수 바탕 농도")
    OUTLET_WARNING_MGL: float = Field(default=25.0, gt=0)

    # =========================================================
    # 5. 버퍼 / 로그
    # =========================================================
    MAX_HISTORY: int = Field(default=20, ge=1)
    MAX_LOG_ENTRIES: int = Field(default=100, ge=1)

    LOG_DIR: str = Field(default=".logs", description="loguru 파일 로그 디렉터리")
    LOG_LEVEL: str = Field(default="INFO")

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.WARNING_THRESHOLD >= self.CAPACITY_THRESHOLD:
            raise ValueError(
                "WARNING_THRESHOLD must be lower than CAPACITY_THRESHOLD "
                f"({self.WARNING_THRESHOLD} >= {self.CAPACITY_THRESHOLD})"
            )
        return self

    # =========================================================
    # 6. 파생 값 (Helper Properties)
    # =========================================================
    @property
    def MAX_LOAD_MG(self) -> float:
        """컬럼 총 흡착 용량 (mg) = 질량 x 단위 용량."""
        return self.MOF_TOTAL_MASS_G * self.MOF_CAPACITY_MG_PER_G

    @property
    def log_dir_path(self) -> Path:
        return Path(self.LOG_DIR).resolve()


@lru_cache
def get_settings() -> Settings:
    """싱글톤 Settings 인스턴스."""
    return Settings()

# mofguard/core/logger.py
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from mofguard.core.config import get_settings

LOG_FILE_NAME = "mofguard.log"


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    to_file: bool = True,
) -> Optional[str]:
    """
    Loguru 로그 설정을 초기화합니다.
    - Console: 지정 레벨 이상 (기본 settings.LOG_LEVEL)
    - File: DEBUG 레벨 이상 (tick 단위 기록 포함)

    반환값: 파일 로그 경로 (파일 로그 비활성화 시 None)
    """
    settings = get_settings()
    console_level = (level or settings.LOG_LEVEL).upper()

    # 1. 기존 핸들러 제거 (중복 방지)
    logger.remove()

    # 2. 콘솔 출력 (stdout은 대시보드 출력용이므로 stderr 사용)
    logger.add(
        sys.stderr,
        level=console_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )

    if not to_file:
        return None

    # 3. 파일 출력
    # - 매일 자정 회전, 10일 보관, zip 압축
    log_dir_path = Path(log_dir) if log_dir else settings.log_dir_path
    log_dir_path.mkdir(parents=True, exist_ok=True)
    log_file = log_dir_path / LOG_FILE_NAME

    logger.add(
        str(log_file),
        rotation="00:00",
        retention="10 days",
        compression="zip",
        level="DEBUG",
        enqueue=True,
        encoding="utf-8",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} - {message}",
    )

    return str(log_file)

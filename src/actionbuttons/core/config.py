# actionbuttons/core/config.py
from dotenv import load_dotenv
load_dotenv(".env")
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field

class Settings(BaseSettings):
    # model_config 会自动加载 .env 文件
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- 引擎等待时间 (毫秒) ---
    # 字段句柄返回后，会话确认其有效性之前的等待时间
    FIELD_SETTLE_DELAY_MS: int = Field(120, ge=0, description="Delay before a field handle is evaluated.")
    # REST 调用写入变量后，下一步读取之前的等待时间
    VARIABLE_SETTLE_DELAY_MS: int = Field(100, ge=0, description="Delay after variables are written by a REST call.")
    PROGRESS_TICK_MS: int = Field(1000, gt=0, description="Elapsed-time tick and task status poll cadence.")
    DEFAULT_DELAY_MS: int = Field(1000, ge=0, description="Fallback for delayExecution when its value is unparsable.")

    # --- Dynamic buttons ---
    BUTTON_LIMIT: int = Field(100, gt=0, description="Safety limit for dynamically generated buttons.")

    # --- REST ---
    REST_TIMEOUT_SECONDS: float = 30.0
    QRS_PATH_PREFIX: str = "/qrs"

    # 任务执行结果状态码
    TASK_STATUS_SUCCESS: int = 7
    TASK_STATUS_FAILED: int = 8

    LOG_DOWNLOAD_DIR: str = "./downloads"

    @computed_field
    @property
    def FIELD_SETTLE_DELAY(self) -> float:
        return self.FIELD_SETTLE_DELAY_MS / 1000.0

    @computed_field
    @property
    def VARIABLE_SETTLE_DELAY(self) -> float:
        return self.VARIABLE_SETTLE_DELAY_MS / 1000.0

    @computed_field
    @property
    def PROGRESS_TICK(self) -> float:
        return self.PROGRESS_TICK_MS / 1000.0

settings = Settings()

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    全局配置，从环境变量 / .env 中读取。
    """

    # Dynatrace 租户配置（缺失时不阻止启动，处理事件时再报错并回传 finished 事件）
    DT_TENANT: str = ""
    DT_API_TOKEN: str = ""
    DT_API_TIMEOUT_S: float = 10.0

    # Keptn 事件发送（distributor sidecar）
    KEPTN_EVENT_BROKER_URL: str = "http://localhost:8081/event"
    KEPTN_EVENT_TIMEOUT_S: float = 10.0

    # 服务标识：作为发出事件的 source，以及监听的 task 名称
    SERVICE_NAME: str = "dynatrace-synthetic-service"
    TASK_NAME: str = "test"

    # 事件处理记录：已结束的记录保留时长与最大条数
    TASK_RETENTION_S: float = 3600.0
    TASK_MAX_RECORDS: int = 1000

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    获取全局单例配置实例。
    """
    return Settings()

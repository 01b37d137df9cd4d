from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Tutoring Academy'
    app_env: str = 'local'
    app_host: str = '127.0.0.1'
    app_port: int = 8000
    app_timezone: str = 'Africa/Cairo'
    database_url: str = 'sqlite:///./academy.db'
    store_backend: Literal['sql', 'memory'] = 'sql'
    default_hourly_rate: float = 15.0
    default_class_duration_minutes: int = 60
    salary_report_policy: Literal['unique', 'append'] = 'unique'
    strict_status_transitions: bool = False
    expansion_horizon_days: int = 7
    expansion_job_time: str = '00:05'
    holiday_country_code: str = 'EG'
    holiday_api_base: str = 'https://date.nager.at'
    enable_scheduler: bool = True
    db_slow_query_ms: int = 100
    metrics_slow_ms: int = 200


settings = Settings()

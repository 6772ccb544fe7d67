from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # strftime pattern for dates in exported reports
    report_date_format: str = Field("%d/%m/%Y", alias="REPORT_DATE_FORMAT")
    report_title: str = Field("Fee Dues Report", alias="REPORT_TITLE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

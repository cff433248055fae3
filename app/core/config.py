import os
from typing import List, Union
from pydantic import field_validator, model_validator, Field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

class Settings(BaseSettings):
    # API settings
    PROJECT_NAME: str = "Institute Management System API"
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Database settings
    DATABASE_URL: str = ""  # Full SQLAlchemy URL. When empty it is assembled from the MYSQL_* settings below.
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""
    MYSQL_DATABASE: str = "ims2025"
    VALIDATE_SCHEMA_ON_STARTUP: bool = True  # Log missing tables/columns once at boot
    DB_POOL_SIZE: int = 10 # Maximum concurrent connections held by the pool
    DB_MAX_OVERFLOW: int = 0 # Requests wait for a free connection instead of opening extra ones
    DB_POOL_TIMEOUT: int = 30 # Seconds to wait for a connection before failing the request
    DB_POOL_RECYCLE: int = 1800 # Seconds after which connections are recycled (30 mins)

    # Security
    SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_TOKEN_EXPIRE_HOURS: int = Field(default=24, description="Lifetime of tokens minted by create_session_token.")

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Uploads
    UPLOAD_DIR: str = "public/uploads/certificates"
    UPLOAD_URL_BASE: str = "/uploads/certificates"
    MAX_CERTIFICATE_SIZE_MB: int = Field(default=30, description="Largest accepted award certificate upload.")

    # Admin console
    ADMIN_TABLE_PREVIEW_ROWS: int = Field(default=100, description="Rows returned per table by the admin table browser.")

    # Report generation
    REPORT_MAX_RATE: int = Field(default=20, description="Max PDF reports generated within the time period.")
    REPORT_TIME_PERIOD: int = Field(default=60, description="Time period in seconds for the report rate limiter.")
    INSTITUTE_TRUST_NAME: str = "Agnel Charities"
    INSTITUTE_NAME: str = "Fr. C. Rodrigues Institute of Technology, Vashi"
    INSTITUTE_AFFILIATION: str = "(An Autonomous Institute & Permanently Affiliated to University of Mumbai)"
    DEFAULT_HOD_NAME: str = "Prof. YYY ZZZ"
    REPORT_FOOTER: str = "Institute Management System - NAAC/NBA Reports"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = 'ignore'

    @field_validator("CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        if isinstance(v, list):
            return v
        raise ValueError(v)

    @model_validator(mode='after')
    def check_required_settings(cls, values):
        if not values.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable is missing or empty.")

        # Assemble the MySQL URL from its parts when no full URL was given
        if not values.DATABASE_URL:
            values.DATABASE_URL = URL.create(
                "mysql+aiomysql",
                username=values.MYSQL_USER,
                password=values.MYSQL_PASSWORD or None,
                host=values.MYSQL_HOST,
                port=values.MYSQL_PORT,
                database=values.MYSQL_DATABASE,
            ).render_as_string(hide_password=False)
        return values

    @property
    def max_certificate_bytes(self) -> int:
        return self.MAX_CERTIFICATE_SIZE_MB * 1024 * 1024

# Create global settings object
settings = Settings()

# Ensure upload directory exists
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

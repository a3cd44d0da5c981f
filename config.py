from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "gt06-server"
    PROD: bool = False

    # GPS TCP Server configuration
    GPS_TCP_HOST: str = "0.0.0.0"
    GPS_TCP_PORT: int = 5000
    MAX_CONNECTIONS: int = 1000
    CONNECTION_TIMEOUT: int = 300  # seconds without data before a connection is closed

    # Logging
    LOG_FILE: str = "./logs/gt06_server.log"
    # Frames, decoded records and replies, one timestamped line each
    PACKET_LOG_FILE: str = "gps_data.log"

    # Prometheus exporter (disabled when unset)
    METRICS_PORT: Optional[int] = None

    class Config:
        env_file = '.env'


settings = Settings()

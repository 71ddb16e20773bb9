from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False

    # Tabular data sources
    DATA_DIR: str = "data"
    FLIGHTS_FILE: str = "travel_flights.csv"
    SHOWS_FILE: str = "shows.csv"
    SHOWS_API_URL: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Answers are stored per locale; flights without a zone fall back to USER_TZ
    LOCALE: str = "en-AU"
    USER_TZ: str = "Australia/Sydney"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()

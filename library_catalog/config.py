import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Storage
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library_books.json")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # Application
    app_name: str = os.getenv("APP_NAME", "Biblioteca")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "R$")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")


settings = Settings()

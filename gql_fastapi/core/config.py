from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    GRAPHQL_PATH: str = "/graphql"
    GRAPHQL_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()

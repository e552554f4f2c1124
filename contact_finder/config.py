from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    log_level: str = "INFO"
    user_agent: str = "ContactFinder/1.0"
    max_jobs: int = 1000

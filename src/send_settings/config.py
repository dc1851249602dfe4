"""send_settings process configuration: logging, tracing and default paths."""

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    # Directory holding estab-cats.csv, designations.csv, etc.
    settings_dir: str | None = None

    # MLflow
    mlflow_tracking_uri: str = "sqlite:///mlruns/mlflow.db"
    mlflow_experiment_name: str = "send-settings"

    # Logging
    log_json: bool = True
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "SEND_SETTINGS_", "extra": "ignore"}


app_settings = AppSettings()

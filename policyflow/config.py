from pydantic import Field
from pydantic_settings import BaseSettings

from policyflow.domain.policies.eligibility import EditRules


class Settings(BaseSettings):
    # Persistence
    database_url: str = "sqlite:///./policies.sqlite3"

    # Workflow
    edit_rules: EditRules = EditRules.REVIEW_CHAIN
    manual_submission: bool = False

    # Simulated fraud oracle
    fraud_pass_rate: float = Field(default=0.8, ge=0.0, le=1.0)

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "POLICYFLOW_"


settings = Settings()

# --------------------------------
# DI container
# --------------------------------
from functools import lru_cache

from sqlalchemy.orm import Session

from policyflow.config import Settings, settings as default_settings
from policyflow.domain.fraud import FraudOracle, RandomFraudOracle
from policyflow.domain.policies import PolicyApprovalEngine, PolicyRepositoryProtocol
from policyflow.domain.policies.sql_repository import PolicyRepository


class Container:
    def __init__(self, settings: Settings = default_settings, fraud_oracle: FraudOracle | None = None):
        self._settings = settings
        self._fraud_oracle = fraud_oracle or RandomFraudOracle(
            pass_rate=settings.fraud_pass_rate
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def fraud_oracle(self) -> FraudOracle:
        return self._fraud_oracle

    def policy_repository(self, db: Session) -> PolicyRepositoryProtocol:
        return PolicyRepository(db)

    def engine(self, repository: PolicyRepositoryProtocol) -> PolicyApprovalEngine:
        """A request-scoped engine over ``repository``."""
        return PolicyApprovalEngine(
            repository=repository,
            fraud_oracle=self._fraud_oracle,
            edit_rules=self._settings.edit_rules,
            manual_submission=self._settings.manual_submission,
        )


@lru_cache
def get_container():
    return Container()

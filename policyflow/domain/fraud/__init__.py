"""Fraud oracles consulted once, when a policy is created."""
from .fraud_oracle import FraudOracle
from .random_fraud_oracle import RandomFraudOracle
from .fake_fraud_oracle import FakeFraudOracle

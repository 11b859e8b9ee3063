"""This module owns the policy approval workflow."""
from .entities import (
    Actor,
    ApprovalAction,
    ApprovalLogEntry,
    Decision,
    FraudCheck,
    Policy,
    PolicyStatus,
    ProductType,
    Role,
)
from .eligibility import EditRules, Mutation, check_mutation, can_view
from .state_machine import TERMINAL_STATUSES, TRANSITIONS, Trigger, next_status
from .validation import PolicyAttributes, PolicyPatch, parse_attributes, parse_patch
from .repository import PolicyRepositoryProtocol
from .in_memory_repository import InMemoryPolicyRepository
from .engine import PolicyApprovalEngine

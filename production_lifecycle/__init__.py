"""
Production Lifecycle Engine

Rules that govern a production project's lifecycle:
- State graph of lifecycle states and legal transitions
- Phase map projecting each state onto five ordered phases
- Module gate deciding which screens are unlocked per state
- Transition requirements checked against a project snapshot
- Greenlight gate aggregating stakeholder approvals
- Next-action recommendations per user

Everything here is synchronous and side-effect free over an in-memory
project snapshot. Persistence, identity and rendering belong to the caller.
"""

__version__ = "1.0.0"

from .errors import LifecycleError, PolicyError, UnknownApprovalRoleError
from .lifecycle_states import (
    LifecycleState,
    Phase,
    PHASE_ORDER,
    STATE_ORDER,
    STATE_TO_PHASE,
    VALID_TRANSITIONS,
    get_phase,
    get_phase_index,
    get_state_index,
    get_valid_next_states,
    is_phase_accessible,
    is_valid_transition,
)
from .module_gate import (
    ModuleGate,
    can_access_module,
    get_module_restricted_message,
)
from .transition_requirements import (
    RequirementType,
    TransitionRequirement,
    TransitionCheck,
    TransitionDecision,
    can_transition_to,
    evaluate_transition,
    get_transition_requirements,
)
from .greenlight_gate import (
    ApprovalRole,
    ApprovalRecord,
    GreenlightGate,
    GreenlightStatus,
    PendingApprover,
    build_approval_update,
    evaluate_greenlight,
)
from .next_actions import (
    ActionPriority,
    ActorContext,
    NextAction,
    recommend_next_actions,
)
from .policy import LifecyclePolicy, load_policy
from .engine import ProductionLifecycleEngine

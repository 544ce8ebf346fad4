"""
Production Lifecycle: Engine

Single entry point that wires the module gate, greenlight gate and action
recommender from one LifecyclePolicy.

The engine keeps no per-project state. Every method is a pure function of
its arguments and the policy, so repeated calls on an unchanged snapshot
return equal results.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .greenlight_gate import ApprovalRole, GreenlightGate, GreenlightStatus
from .lifecycle_states import (
    LifecycleState,
    Phase,
    describe_state,
    get_phase,
    get_valid_next_states,
    is_phase_accessible,
    is_valid_transition,
)
from .module_gate import MODULE_TO_PHASE, ModuleGate
from .next_actions import (
    ActorContext,
    NextAction,
    NextActionRecommender,
    describe_actor,
    snapshot_state,
)
from .policy import LifecyclePolicy, load_policy
from .transition_requirements import (
    TransitionCheck,
    TransitionDecision,
    TransitionRequirement,
    can_transition_to,
    evaluate_transition,
    get_transition_requirements,
)

logger = logging.getLogger("lifecycle_engine")


class ProductionLifecycleEngine:
    """
    Facade over the production lifecycle rules.

    Provides:
    - State graph and phase queries
    - Module visibility
    - Transition requirement checks
    - Greenlight gate evaluation and approval updates
    - Next-action recommendations
    """

    def __init__(self, policy: Optional[LifecyclePolicy] = None):
        self.policy = policy or LifecyclePolicy()

        module_phases = dict(MODULE_TO_PHASE)
        module_phases.update(self.policy.extra_module_phases)
        self.module_gate = ModuleGate(
            module_phases=module_phases,
            utility_modules=self.policy.utility_modules,
            fail_open=self.policy.fail_open_unmapped_modules,
        )
        self.greenlight_gate = GreenlightGate(self.policy.tracked_approval_roles)
        self.recommender = NextActionRecommender(gate=self.greenlight_gate)

        logger.debug(
            f"Engine ready: {len(module_phases)} modules, "
            f"tracked roles {[r.value for r in self.greenlight_gate.tracked_roles]}"
        )

    @classmethod
    def from_policy_file(cls, path: Optional[str] = None) -> "ProductionLifecycleEngine":
        return cls(load_policy(path))

    # -------------------------------------------------------------------------
    # State Graph & Phases
    # -------------------------------------------------------------------------

    def is_valid_transition(self, from_state: Any, to_state: Any) -> bool:
        return is_valid_transition(from_state, to_state)

    def get_valid_next_states(self, state: Any) -> List[LifecycleState]:
        return get_valid_next_states(state)

    def get_phase(self, state: Any) -> Optional[Phase]:
        return get_phase(state)

    def is_phase_accessible(self, current_state: Any, target_phase: Any) -> bool:
        return is_phase_accessible(current_state, target_phase)

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def can_access_module(self, state: Any, module_id: str) -> bool:
        return self.module_gate.can_access_module(state, module_id)

    def get_module_restricted_message(self, state: Any, module_id: str) -> Optional[str]:
        return self.module_gate.get_module_restricted_message(state, module_id)

    def get_locked_modules(self, state: Any) -> List[str]:
        return self.module_gate.get_locked_modules(state)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def get_transition_requirements(self, target_state: Any) -> List[TransitionRequirement]:
        return get_transition_requirements(target_state)

    def can_transition_to(self, target_state: Any, snapshot: Mapping[str, Any]) -> TransitionCheck:
        return can_transition_to(target_state, snapshot)

    def evaluate_transition(
        self,
        current_state: Any,
        target_state: Any,
        snapshot: Mapping[str, Any],
    ) -> TransitionDecision:
        decision = evaluate_transition(current_state, target_state, snapshot)
        if not decision.allowed:
            logger.info(f"Transition denied: {decision.reason}")
        return decision

    # -------------------------------------------------------------------------
    # Greenlight
    # -------------------------------------------------------------------------

    def evaluate_greenlight(self, snapshot: Mapping[str, Any]) -> GreenlightStatus:
        return self.greenlight_gate.evaluate(snapshot)

    def build_approval_update(
        self,
        snapshot: Mapping[str, Any],
        role: ApprovalRole,
        approved: bool,
        actor_email: str,
        decided_at: datetime,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self.greenlight_gate.build_approval_update(
            snapshot, role, approved, actor_email, decided_at, comment
        )

    # -------------------------------------------------------------------------
    # Next Actions
    # -------------------------------------------------------------------------

    def describe_actor(self, snapshot: Mapping[str, Any], email: str) -> ActorContext:
        return describe_actor(snapshot, email, self.greenlight_gate)

    def recommend_next_actions(
        self,
        snapshot: Mapping[str, Any],
        actor_email: str,
        actor: Optional[ActorContext] = None,
    ) -> List[NextAction]:
        return self.recommender.recommend(snapshot, actor_email, actor)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def describe(self, snapshot: Mapping[str, Any], actor_email: Optional[str] = None) -> Dict[str, Any]:
        """JSON-ready summary of a project snapshot, optionally for one user."""
        state = snapshot_state(snapshot)
        summary = describe_state(state if state is not None else snapshot.get("lifecycleState"))
        summary["locked_modules"] = self.get_locked_modules(state) if state is not None else []
        summary["transitions"] = {
            target.value: self.evaluate_transition(state, target, snapshot).to_dict()
            for target in (get_valid_next_states(state) if state is not None else [])
        }
        summary["greenlight"] = self.evaluate_greenlight(snapshot).to_dict()
        if actor_email:
            summary["next_actions"] = [
                a.to_dict() for a in self.recommend_next_actions(snapshot, actor_email)
            ]
        return summary

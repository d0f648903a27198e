"""Decision support: rendezvous feasibility between a mover and tag targets."""

from pysitaware.planning.rendezvous import decision_support, evaluate_target, plan_rendezvous, select_tag_targets

__all__ = ["decision_support", "evaluate_target", "plan_rendezvous", "select_tag_targets"]

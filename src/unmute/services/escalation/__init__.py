"""Escalation workflow services package."""

from unmute.services.escalation.escalation_workflow import EscalationWorkflow

__all__ = ["EscalationWorkflow"]

"""
Exception hierarchy for markup evolution runs.

- ConfigurationError: invalid config or missing registrations, raised before
  any generation runs
- OperatorError: a mutation, crossover or fitness call failed; the engine
  recovers locally and keeps going
- CollaboratorError: the pattern store failed during seeding or persistence
"""

from typing import Any, Dict, Optional


class EvolutionError(Exception):
    """Base for all markup evolution errors."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if phase:
            message = f"[{phase}] {message}"
        super().__init__(message)
        self.phase = phase
        self.context = context or {}


class ConfigurationError(EvolutionError):
    """Invalid configuration or incomplete engine setup."""


class OperatorError(EvolutionError):
    """A mutation, crossover or evaluation call raised."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        operator: Optional[str] = None,
        organism_id: Optional[str] = None,
    ):
        super().__init__(
            message,
            phase=phase,
            context={'operator': operator, 'organism_id': organism_id},
        )
        self.operator = operator
        self.organism_id = organism_id


class CollaboratorError(EvolutionError):
    """The external pattern store failed."""


__all__ = [
    'EvolutionError',
    'ConfigurationError',
    'OperatorError',
    'CollaboratorError',
]

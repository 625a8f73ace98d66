"""Identity claim agents."""

from identity_system.agents.base_agent import BaseAgent

__all__ = ["BaseAgent"]

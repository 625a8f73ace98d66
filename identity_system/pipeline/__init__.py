"""Pipeline orchestration for automatic phase-to-phase data flow.

- SynthesisPipeline: document evidence -> synthesis -> claim audit
"""

from identity_system.pipeline.synthesis_pipeline import SynthesisPipeline

__all__ = ["SynthesisPipeline"]

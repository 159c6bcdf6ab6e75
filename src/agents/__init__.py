# src/agents/__init__.py
# one agent per pipeline stage

from .planner import PlannerAgent
from .data_agent import DataAgent
from .insight_agent import InsightAgent
from .creative_generator import CreativeGeneratorAgent

__all__ = [
    "PlannerAgent",
    "DataAgent",
    "InsightAgent",
    "CreativeGeneratorAgent",
]

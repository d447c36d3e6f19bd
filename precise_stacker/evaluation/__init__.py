"""
Evaluation Package
==================

Contains the evaluation harness for scoring autoplay agents.
"""

from precise_stacker.evaluation.run_eval import evaluate_agent, load_agent

__all__ = ["evaluate_agent", "load_agent"]

"""Simulation headless du moteur."""

from .runner import HeadlessEnv, StepResult, acting_player, run_random_game

__all__ = ["HeadlessEnv", "StepResult", "acting_player", "run_random_game"]

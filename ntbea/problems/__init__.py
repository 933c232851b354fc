"""
Example problems for NTBEA.
"""

from .max_m import MaxMProblem, max_m_optimal_value, create_problem_from_config, PROBLEMS

__all__ = [
    'MaxMProblem',
    'max_m_optimal_value',
    'create_problem_from_config',
    'PROBLEMS',
]

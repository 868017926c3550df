"""
runplan

Periodized running training-plan skeletons with guardrail validation.
"""

__version__ = "0.1.0"

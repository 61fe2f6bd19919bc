"""Validation rules for species counterpoint exercises."""

from .base import Category, Rule, RuleResult, Severity, Violation

__all__ = ["Category", "Rule", "RuleResult", "Severity", "Violation"]

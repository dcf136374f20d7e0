"""Automatic removal of offending project references."""

from fix.autofix import FixResult, fix_violations, remove_reference, remove_references

__all__ = ["FixResult", "fix_violations", "remove_reference", "remove_references"]

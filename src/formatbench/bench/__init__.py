"""Benchmarking subsystem for formatbench.

Provides the candidate definitions, the sequential benchmark runner,
summary statistics, and the report renderers used to compare file
formats against each other.
"""

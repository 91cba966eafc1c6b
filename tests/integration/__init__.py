"""
Integration tests for recfilter.

These run complete expressions through the engine over generated datasets.
"""

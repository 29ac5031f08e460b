"""
Command-line pipeline for running the schedule optimizer from a YAML config.
"""

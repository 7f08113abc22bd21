"""Evaluation run, weighted aggregation and score classification."""

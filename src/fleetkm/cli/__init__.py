"""Command-line interface for fleetkm."""

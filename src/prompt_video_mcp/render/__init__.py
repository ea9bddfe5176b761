"""Remotion rendering: job layout, CLI engine, and the per-variant invoker."""

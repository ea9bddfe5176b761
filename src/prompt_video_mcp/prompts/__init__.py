"""Instruction prompts sent to the model service."""

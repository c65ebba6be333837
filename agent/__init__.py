"""Prompt templates for the generation skills."""

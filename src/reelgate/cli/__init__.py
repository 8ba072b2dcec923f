"""Reelgate command-line interface."""

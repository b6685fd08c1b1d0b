"""Tests for simplessh."""

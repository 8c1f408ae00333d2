"""Tests for ownkit."""

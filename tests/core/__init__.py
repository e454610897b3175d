"""Tests for symcalc.core."""

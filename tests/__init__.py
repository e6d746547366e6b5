"""Test suite for pushcal."""

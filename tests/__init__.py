"""Test suite for bracketeer."""

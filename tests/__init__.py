"""Tests for golos_client."""

"""Tests for shared logging and metrics utilities."""

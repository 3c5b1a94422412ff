"""Core domain: pure logic with no infrastructure imports."""

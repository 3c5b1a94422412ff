"""Membership lifecycle: access requests, invitations, teams and users."""

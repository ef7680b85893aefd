"""Collaborators behind the gate: user and settings stores, translations, directory listing."""

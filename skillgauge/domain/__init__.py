"""Persistence stores for identities, questions, settings and worker profiles."""

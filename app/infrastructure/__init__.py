"""Infrastructure: persistence, security, external collaborators."""

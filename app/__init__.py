"""Storefront admin auth service."""

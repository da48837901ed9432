"""Middleware package for Product Service."""

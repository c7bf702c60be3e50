"""Upstream product shape normalization and pagination cursors."""

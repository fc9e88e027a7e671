"""
Package: delivery
Description: Retrying push delivery for the blob relay.

Provides the delivery engine that POSTs notifications downstream,
the tenacity-based retry mechanics and the relay error taxonomy.
"""

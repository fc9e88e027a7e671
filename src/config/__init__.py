"""
Package: config
Description: Environment-sourced configuration for the blob relay.
"""

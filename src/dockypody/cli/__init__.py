# src/dockypody/cli/__init__.py
"""Camada fina de linha de comando do DockyPody."""

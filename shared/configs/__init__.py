"""Shared configuration: settings, scoring models and the YAML loader."""

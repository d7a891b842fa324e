"""Shared metadata for every table."""

from sqlalchemy import MetaData

metadata = MetaData()

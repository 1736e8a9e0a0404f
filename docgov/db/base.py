"""Declarative base for docgov models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

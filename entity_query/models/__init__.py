"""Database models for the entity document store"""
from .document import DocumentKey, DocumentRow

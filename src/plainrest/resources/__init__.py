"""
Example CRUD resources: products, users and posts.
"""

from .models import Post, Product, Record, User
from .handlers import SEED_DATA, ResourceHandler

__all__ = [
    "Record",
    "Product",
    "User",
    "Post",
    "ResourceHandler",
    "SEED_DATA",
]

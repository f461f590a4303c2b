"""Indexed collections core."""

from .indexed import IndexedCollections
from .maintainer import IndexMaintainer
from .membership import MembershipStore
from .query import FETCH_ALL, QueryEngine

__all__ = ["IndexedCollections", "IndexMaintainer", "MembershipStore", "QueryEngine", "FETCH_ALL"]
